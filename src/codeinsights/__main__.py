"""codeinsights MCPサーバーのコマンドラインエントリポイント。"""

if __name__ == "__main__":
    from codeinsights.config import ServerConfig
    from codeinsights.logging_config import setup_logging
    from codeinsights.server import create_server

    config = ServerConfig()
    setup_logging(config.log_level)
    mcp = create_server(config)
    if config.transport == "stdio":
        mcp.run()
    else:
        import uvicorn

        app = mcp.http_app(transport=config.transport)
        uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())
