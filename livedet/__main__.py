"""Entry point for python -m livedet."""

from .cli import configure_logging, parse_args


def main():
    """Main entry point."""
    config = parse_args()
    configure_logging(config.log_level)
    if config.headless:
        from .runners.headless import run_headless
        run_headless(config)
    else:
        from .runners.live import run_live
        run_live(config)


if __name__ == "__main__":
    main()
