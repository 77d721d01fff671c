"""
Command-line demo for joining a Gabber realtime session.

Every session event is written to the log. Join a room directly with a
LiveKit URL and token, or start a new session with the Gabber API token from
GABBER_API_TOKEN.

Usage:
    python -m gabber --url wss://... --token ...
    python -m gabber --persona PERSONA_ID [--scenario SCENARIO_ID] [--mic] [--chat TEXT]
"""

import argparse
import asyncio
import sys

from gabber.config.logging_config import configure_logging
from gabber.config.settings import load_settings
from gabber.listener import LoggingListener
from gabber.models.session_schemas import ConnectionDetails, SessionStartRequest
from gabber.session import Session


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Join a Gabber realtime voice session")
    parser.add_argument("--url", help="LiveKit room URL (requires --token)")
    parser.add_argument("--token", help="LiveKit room join token")
    parser.add_argument("--persona", help="Persona ID for a new session")
    parser.add_argument("--scenario", help="Scenario ID for a new session")
    parser.add_argument("--chat", help="Chat message to send once connected")
    parser.add_argument("--mic", action="store_true", help="Enable the microphone")
    parser.add_argument(
        "--duration",
        type=float,
        default=60.0,
        help="Seconds to stay connected (default: 60)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: LOG_LEVEL env var or INFO)",
    )
    return parser.parse_args(argv)


def build_connect_options(args):
    """Choose direct connection details or a session start request."""
    if args.url or args.token:
        if not (args.url and args.token):
            raise ValueError("--url and --token must be given together")
        return ConnectionDetails(url=args.url, token=args.token)
    if not args.persona:
        raise ValueError("Either --url/--token or --persona is required")
    return SessionStartRequest(persona=args.persona, scenario=args.scenario)


async def run(args, settings, logger):
    listener = LoggingListener()
    session = Session(
        listener,
        token=settings.api_token,
        api_url=settings.api_url,
        api_timeout=settings.timeout,
    )
    await session.connect(build_connect_options(args))
    try:
        if args.mic:
            await session.set_microphone(True)
        if args.chat:
            await session.send_chat(args.chat)
        await asyncio.sleep(args.duration)
    finally:
        await session.disconnect()
    logger.info(f"Session ended with {len(session.messages)} transcript message(s)")


def main(argv=None):
    """Main entry point for the demo."""
    args = parse_args(argv)
    logger = configure_logging(args.log_level or "INFO", log_to_file=False)

    try:
        settings = load_settings()
        if args.log_level is None:
            logger.setLevel(settings.log_level)
        asyncio.run(run(args, settings, logger))
    except ValueError as e:
        logger.error(str(e))
        sys.exit(2)
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
