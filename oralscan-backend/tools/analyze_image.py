# analyze_image.py
#
# Analisis satu gambar gigi secara offline (tanpa server Flask).
# - Cek tipe gambar (photo / xray) terhadap --mode
# - Inferensi model Keras; kalau model tidak ada -> heuristik fallback
# - Cetak report teks ke stdout atau simpan ke file (--out)
#
# Contoh:
#   python tools/analyze_image.py -i sample.jpg
#   python tools/analyze_image.py -i pano.png --mode xray --out report.txt
#   python tools/analyze_image.py -i sample.jpg --json

import argparse
import json
import sys

from oralscan.core.config import Config
from oralscan.core.errors import ImageLoadFailure, ModeMismatchDetected
from oralscan.core.logging_config import configure_logging
from oralscan.ml.classification.model_loader import ModelSession
from oralscan.ml.conditions import MODES
from oralscan.services.analysis_service import run_analysis
from oralscan.services.report_service import generate_oral_health_report, generate_pdf_content
from oralscan.utils.image_io import decode_image


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Analisis kondisi gigi dari satu file gambar (photo / X-ray)."
    )
    p.add_argument("--input", "-i", type=str, required=True, help="Path file gambar.")
    p.add_argument("--mode", "-m", type=str, choices=MODES, default=Config.DEFAULT_MODE,
                   help="Mode analisis (default: %(default)s).")
    p.add_argument("--out", "-o", type=str, default=None,
                   help="Simpan report teks ke file ini (default: cetak ke stdout).")
    p.add_argument("--json", action="store_true",
                   help="Cetak analysis + report sebagai JSON, bukan teks.")
    p.add_argument("--log_level", type=str, default=Config.LOG_LEVEL)
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    configure_logging(args.log_level)

    try:
        with open(args.input, "rb") as f:
            img = decode_image(f.read())
    except (OSError, ImageLoadFailure) as e:
        print(f"[ERROR] {ImageLoadFailure.user_message} ({e})", file=sys.stderr)
        return 2

    session = ModelSession(Config.model_configs(), mode=args.mode)
    try:
        analysis = run_analysis(session, img, args.mode)
    except ModeMismatchDetected as e:
        print(f"[WARN] {e.message} (try --mode {e.suggested_mode})", file=sys.stderr)
        return 3

    report = generate_oral_health_report(analysis)

    if args.json:
        text = json.dumps(
            {"analysis": analysis.to_dict(), "report": report.to_dict()},
            indent=2,
            ensure_ascii=False,
        )
    else:
        text = generate_pdf_content(report)

    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"[INFO] Saved report -> {args.out}")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
