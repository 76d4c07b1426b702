import sys
import argparse
import logging

import yaml

from config_parser import parse
from yaml_emitter import write

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def build_arg_parser():
    parser = argparse.ArgumentParser(
        description="Read a configuration document from stdin and write it as YAML."
    )
    parser.add_argument("-o", "--output", required=True, help="Path of the YAML file to write.")
    parser.add_argument(
        "--strict-numbers",
        action="store_true",
        help="Require a fractional part in number literals (e.g. 1.0, not 1).",
    )
    parser.add_argument(
        "--emitter",
        choices=["block", "pyyaml"],
        default="block",
        help="block: quoted-string block YAML (default); pyyaml: yaml.dump output.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


class NoAliasDumper(yaml.SafeDumper):
    """Writes shared constants out in full instead of as &anchor / *alias."""

    def ignore_aliases(self, data):
        return True


def dump(tree, f, emitter):
    if emitter == "pyyaml":
        yaml.dump(
            tree,
            f,
            Dumper=NoAliasDumper,
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
        )
    else:
        write(tree, f)


def main(argv=None):
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format=LOG_FORMAT)

    try:
        source = sys.stdin.read()
        tree = parse(source, {"strict_numbers": args.strict_numbers})

        with open(args.output, "w", encoding="utf-8") as f:
            dump(tree, f, args.emitter)
        logger.info("Wrote %s", args.output)

    except SyntaxError as e:
        print(f"Syntax error: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"I/O error: {e}", file=sys.stderr)
        sys.exit(1)
    except RecursionError:
        print("Error: value nested too deeply for the pyyaml emitter", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
