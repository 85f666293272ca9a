"""
Outlook MCP Server - Main Entry Point

사용법:
    python main.py            # STDIO MCP 서버 실행
    python main.py login      # 브라우저로 로그인 (콜백 서버 포함)
    python main.py logout     # 토큰 캐시 삭제
"""

import argparse
import asyncio
import logging
import os
import sys
import webbrowser

from auth import AzureConfig, ConfigurationError, PersistenceFailure, TokenLifecycleManager
from callback_server import CallbackServer
from mcp_outlook.mcp_server.server_stdio import handle_stdio

logger = logging.getLogger(__name__)

LOGIN_TIMEOUT = 300


def configure_logging():
    """stdout은 JSON-RPC 전용이므로 로그는 stderr로"""
    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


async def login(config: AzureConfig) -> int:
    """브라우저 인증 플로우 - 콜백 서버로 코드 수신"""
    manager = TokenLifecycleManager(config)
    server = CallbackServer.from_redirect_uri(manager, config.redirect_uri)

    try:
        await server.start()
        auth_url = manager.begin_interactive_authorization()

        print("\n" + "=" * 60, file=sys.stderr)
        print("Microsoft Outlook Authentication", file=sys.stderr)
        print("=" * 60, file=sys.stderr)
        print(f"\nOpen this URL if the browser does not open automatically:\n{auth_url}\n", file=sys.stderr)
        webbrowser.open(auth_url)

        if await server.wait_for_auth(timeout=LOGIN_TIMEOUT):
            print("[OK] Authentication successful!", file=sys.stderr)
            return 0
        if server.auth_error:
            print(f"[ERROR] Authentication failed: {server.auth_error}", file=sys.stderr)
        else:
            print("[WARN] Authentication timeout. Please try again.", file=sys.stderr)
        return 1
    finally:
        await server.stop()
        await manager.close()


async def logout(config: AzureConfig) -> int:
    """토큰 캐시 삭제"""
    manager = TokenLifecycleManager(config)
    try:
        await manager.clear_credentials()
    except PersistenceFailure as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    finally:
        await manager.close()
    print("[OK] Signed out; token cache removed.", file=sys.stderr)
    return 0


def cli(argv=None) -> int:
    """커맨드라인 진입점"""
    parser = argparse.ArgumentParser(prog="outlook-mcp", description="Outlook MCP server (Microsoft Graph)")
    parser.add_argument("command", nargs="?", choices=["serve", "login", "logout"], default="serve",
                        help="serve (default): run the STDIO MCP server")
    parser.add_argument("--env-file", default=None, help="path to a .env file")
    args = parser.parse_args(argv)

    configure_logging()

    try:
        config = AzureConfig.from_env(dotenv_path=args.env_file)
    except ConfigurationError as e:
        logger.error(f"❌ {e}")
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    try:
        if args.command == "login":
            return asyncio.run(login(config))
        if args.command == "logout":
            return asyncio.run(logout(config))
        asyncio.run(handle_stdio(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    return 0


if __name__ == "__main__":
    sys.exit(cli())
