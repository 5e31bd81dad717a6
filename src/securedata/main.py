"""Command line entry point for SecureData."""

import argparse
import sys


def main():
    """Start the SecureData API server."""
    parser = argparse.ArgumentParser(
        description="SecureData - personal credential vault",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  securedata                    # Start API server
  securedata --port 8080        # Start API on custom port
""",
    )

    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind API server to (default: 127.0.0.1)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for API server (default: 5000)",
    )

    args = parser.parse_args()

    import uvicorn

    from securedata.core.config import (
        SECUREDATA_HOST,
        SECUREDATA_PORT,
        setup_logging,
        validate_api_environment,
    )

    setup_logging()

    is_valid, message = validate_api_environment()
    if not is_valid:
        print(f"Error: {message}", file=sys.stderr)
        sys.exit(1)

    host = args.host or SECUREDATA_HOST or "127.0.0.1"
    port = args.port or SECUREDATA_PORT

    print(f"Starting SecureData API server on {host}:{port}")
    uvicorn.run(
        "securedata.api.app:app",
        host=host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    main()
