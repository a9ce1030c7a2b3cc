"""
Command line entry point: load the two exports, compute, print a summary.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from dotenv import load_dotenv
from loguru import logger

from .config import ConfigError, load_settings
from .data_models import Dataset
from .engine import compute_all
from .loaders import LoaderError, load_payments, load_transactions
from .reporting import affiliates_frame, suspicious_frame, write_report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ig-analytics",
        description="Cohort, ROI and fraud-suspicion analytics for affiliate exports.",
    )
    parser.add_argument("transactions", help="Transactions export (.xlsx or .csv)")
    parser.add_argument("payments", help="CPA/REV payments export (.xlsx or .csv)")
    parser.add_argument("--config", default=None, help="YAML settings file")
    parser.add_argument("--output", default=None, help="Directory for CSV reports")
    parser.add_argument("--top", type=int, default=10, help="Affiliates to print (default: 10)")
    parser.add_argument("--log-level", default="INFO", help="Log level (default: INFO)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())
    load_dotenv()

    try:
        settings = load_settings(args.config)
        dataset = Dataset(
            transactions=load_transactions(args.transactions),
            payments=load_payments(args.payments),
        )
    except (ConfigError, LoaderError) as e:
        logger.error(str(e))
        return 1

    result = compute_all(dataset, settings)

    totals = result.totals
    print(f"Total clientes: {totals.total_customers}")
    print(f"CAC total:      {totals.cac_total:,.2f}")
    print(f"LTV total:      {totals.ltv_total:,.2f}")
    print(f"ROI:            {totals.roi:.1%}")
    print()
    print(f"Top {args.top} afiliados por NGR:")
    print(affiliates_frame(result.affiliates).head(args.top).to_string(index=False))
    print()
    if result.suspicious:
        print("Afiliados suspeitos:")
        print(suspicious_frame(result).to_string(index=False))
    else:
        print("Nenhum afiliado suspeito.")

    if args.output:
        write_report(result, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
