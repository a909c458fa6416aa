"""
PDF Quiz Service: Main Entry Point
==================================
Starts the Flask-based upload and quiz microservice.

Usage:
    python main.py                    # Default: 0.0.0.0:5000
    python main.py --port 8000        # Custom port
    python main.py --debug            # Debug mode
"""

import argparse
import logging

from pdfquiz.engine import EngineConfig, QuizEngine
from pdfquiz.server import app, create_app

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="PDF Quiz Service")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=5000, help="Bind port")
    parser.add_argument("--debug", action="store_true", help="Debug mode")
    args = parser.parse_args()

    config = EngineConfig.from_env()
    logger.info(
        f"Quiz model: {config.quiz_model} | "
        f"OCR fallback: {'on' if config.ocr_enabled else 'off'}"
    )
    create_app(engine=QuizEngine(config))

    logger.info(f"Starting server on {args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
