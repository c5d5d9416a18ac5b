# scripts/check_storage.py
"""Check the S3 settings: credentials, bucket, and a probe upload."""
import sys

from portal.core.config import settings
from portal.core.logging_config import setup_logging
from portal.services.storage import check_storage_config


def main():
    setup_logging(settings.LOG_LEVEL)
    result = check_storage_config()
    if result["success"]:
        print(result["message"])
        return
    print(f"Storage check failed: {result['error']}", file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
    main()
