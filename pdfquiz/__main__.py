"""
Module entry point for: python -m pdfquiz

Allows running the pipeline directly as a module:
    python -m pdfquiz upload <pdf_path> [options]
    python -m pdfquiz quiz <pdf_path> [options]
    python -m pdfquiz serve [options]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
