import argparse
import logging
from typing import List, Optional

from .base import load_config
from .builder import BitmapBuilder


MIN_VALUE = 5


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Deduplicate and sort a random integer stream with a counting bitmap.")
    parser.add_argument("--max-size", type=int, default=20, help="largest value drawn and stream length; the universe is max-size + 1")
    parser.add_argument("--counter-bits", type=int, default=None, help="bits per counter slot")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument("--save", default=None, metavar="PATH", help="write the bitmap to PATH")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    config = load_config(counter_bits=args.counter_bits)
    builder = BitmapBuilder(args.max_size + 1, config["counter_bits"], config["word_bits"], seed=args.seed)

    stream = builder.random_ints(args.max_size, min(MIN_VALUE, args.max_size), args.max_size)
    print(",".join(str(v) for v in stream))

    report = builder.add_values(stream).build()
    for line in report.render():
        print(line)

    if args.save:
        builder.save_to_file(args.save)
        print(f"Saved bitmap to {args.save}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
