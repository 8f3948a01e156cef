import argparse
import asyncio
import logging
import sys
from pathlib import Path
from .config import getflag, get_config
from .converter import convert_or_raise
from .dom.document import Document
from .dom.fetch import decode_data_url
from .errors import GrayscaleError


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="desaturate",
        description="Convert an image to grayscale.",
    )
    parser.add_argument(
        "image",
        help="Path or URL of the image to convert.",
    )
    parser.add_argument(
        "-o", "--output",
        metavar="FILENAME",
        help="Write the converted image here instead of printing a data URI.",
    )
    parser.add_argument(
        "--type",
        dest="output_type",
        metavar="MIME",
        help="Output image type, e.g. image/png or image/jpeg.",
    )
    parser.add_argument(
        "--quality",
        type=float,
        help="Encoder quality between 0 and 1 for JPEG and WebP output.",
    )
    parser.add_argument(
        '--loglevel',
        default='DEBUG' if getflag("DESATURATE_DEBUG") else 'WARNING',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Set the logging level (default: WARNING)'
    )
    return parser


async def run(args) -> str:
    config = get_config()
    if args.output_type:
        config.set("output_type", args.output_type)
    if args.quality is not None:
        config.set("output_quality", args.quality)

    element = Document().create_element("img", src=args.image)
    return await convert_or_raise(element, config)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.loglevel.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        uri = asyncio.run(run(args))
    except GrayscaleError as e:
        logger.error(f"Conversion failed: {e}")
        return 1

    if args.output:
        body = decode_data_url(uri).body
        Path(args.output).write_bytes(body)
        logger.info(f"Wrote {len(body)} bytes to {args.output}")
    else:
        sys.stdout.write(uri + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
