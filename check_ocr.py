"""CLI to verify the Tesseract binary and OCR language data are installed.

Run it once after provisioning a host; /upload fails with a 500 until the
configured language pack is present.
"""
import argparse
import sys
from typing import List, Optional

import config
from errors import ProcessingError
from ocr_module import TesseractWorker, installed_languages


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--lang", type=str, required=False, default=config.OCR_LANGUAGE, help="Tesseract language code(s), e.g. eng or eng+deu")
    args = parser.parse_args(argv)

    try:
        worker = TesseractWorker.create(language=args.lang)
    except ProcessingError as e:
        print(f"[ERROR] {e.message}: {e.details}")
        return 1
    worker.terminate()

    print(f"[OK] Tesseract ready for '{args.lang}' (installed: {', '.join(installed_languages())})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
