"""
Command-line interface for AI-Chat-Agent.
"""

import argparse
import logging
import sys

import structlog
import uvicorn

from .catalog import MODELS, find_model
from .config import get_settings


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog with console output."""
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level.upper())
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=True),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="ai-chat",
        description="AI-Chat-Agent - conversation context management for LLM chat",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default=None, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    config_parser = subparsers.add_parser("config", help="Show configuration")
    config_parser.add_argument("--check", action="store_true", help="Check configuration validity")

    subparsers.add_parser("models", help="List available models and pricing")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    settings = get_settings()
    configure_logging(settings.log_level)

    if args.command == "serve":
        run_server(args.host or settings.host, args.port or settings.port, args.reload)
    elif args.command == "config":
        ok = show_config(args.check)
        if not ok:
            sys.exit(1)
    elif args.command == "models":
        list_models()
    else:
        parser.print_help()


def run_server(host: str, port: int, reload: bool) -> None:
    """Run the FastAPI server."""
    logger.info("Starting AI-Chat-Agent server", host=host, port=port)

    uvicorn.run(
        "ai_chat_agent.api.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
        log_level="info",
    )


def list_models() -> None:
    """Print the model registry."""
    settings = get_settings()

    print(f"\n{'Model':<40} {'Tier':<8} {'Provider':<12} {'In $/M':>8} {'Out $/M':>8} {'Context':>9}")
    print("-" * 90)

    for m in MODELS:
        marker = "*" if m.id == settings.default_model else " "
        print(
            f"{marker}{m.id:<39} {m.tier:<8} {m.provider:<12} "
            f"{m.pricing.input:>8.2f} {m.pricing.output:>8.2f} {m.context_window:>9,}"
        )

    print("\n* default model")


def show_config(check: bool) -> bool:
    """Show current configuration. Returns False when the check finds errors."""
    settings = get_settings()

    def mask(value: str) -> str:
        if not value:
            return "(not set)"
        return value[:4] + "..." + value[-4:] if len(value) > 10 else "****"

    print("\n=== AI-Chat-Agent Configuration ===\n")

    print("Server:")
    print(f"  Host: {settings.host}")
    print(f"  Port: {settings.port}")
    print(f"  Debug: {settings.debug}")

    print("\nLLM Providers:")
    print(f"  Default Model: {settings.default_model}")
    print(f"  DeepSeek Key: {mask(settings.deepseek_api_key)}")
    print(f"  OpenRouter Key: {mask(settings.openrouter_api_key)}")
    print(f"  Anthropic Key: {mask(settings.anthropic_api_key)}")

    print("\nContext Strategy:")
    print(f"  Default Strategy: {settings.default_strategy}")
    print(f"  Window Size: {settings.default_window_size} (min {settings.min_window_size})")
    print(f"  Summary Recent Window: {settings.summary_recent_window}")
    print(f"  Summary Batch Size: {settings.summary_batch_size}")

    print("\nDatabase:")
    print(f"  URL: {settings.database_url}")

    if not check:
        return True

    print("\n=== Configuration Check ===\n")
    errors = []
    warnings = []

    model = find_model(settings.default_model)
    if model is None:
        errors.append(f"DEFAULT_MODEL {settings.default_model!r} is not in the model registry")
    elif not settings.get_provider_config(model.provider).api_key:
        errors.append(f"No API key set for the default model's provider ({model.provider})")

    has_llm = (
        settings.deepseek_api_key or
        settings.openrouter_api_key or
        settings.anthropic_api_key
    )
    if not has_llm:
        warnings.append("No LLM API key is set")

    if errors:
        print("❌ Errors:")
        for e in errors:
            print(f"   - {e}")

    if warnings:
        print("⚠️  Warnings:")
        for w in warnings:
            print(f"   - {w}")

    if not errors and not warnings:
        print("✅ Configuration looks good!")
    elif not errors:
        print("\n✅ Configuration is valid (with warnings)")
    else:
        print("\n❌ Configuration has errors - fix them before starting")

    return not errors


if __name__ == "__main__":
    main()
