# scripts/run_monthly_fees.py
"""
Adds the monthly class fee to every active student's pending amount.
Meant for cron on the first day of the month.

  python -m scripts.run_monthly_fees            # apply
  python -m scripts.run_monthly_fees --preview  # print what would change
"""
import argparse
import json
import logging

from app import create_app
from blueprints.fees.services import monthly_fees_preview, run_monthly_fees

log = logging.getLogger("scripts.run_monthly_fees")

def main(argv=None):
    parser = argparse.ArgumentParser()
    parser.add_argument("--preview", action="store_true", help="show the plan without writing")
    parser.add_argument("--config", default=None, help="config name (dev|prod|test)")
    args = parser.parse_args(argv)

    app = create_app(args.config)
    with app.app_context():
        if args.preview:
            result = monthly_fees_preview()
        else:
            result = run_monthly_fees()
            log.info("monthly fee run finished: %s", result)
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return result

if __name__ == "__main__":
    main()
