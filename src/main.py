import sys
import logging

from pydantic import ValidationError

from config import get_settings
from payments_engine import PaymentsEngine
from result_emitter import write_csv

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    filepath = argv[0]
    engine = PaymentsEngine(settings)
    try:
        accounts = engine.process_file(filepath)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Cannot read {filepath}: {e}")
        return 1

    write_csv(accounts, sys.stdout, settings.output_precision, settings.rounding)
    return 0


if __name__ == "__main__":
    sys.exit(main())
