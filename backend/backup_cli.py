"""
Export / import the OnniBox database as a JSON backup file.

Usage:
    python backup_cli.py export backups/onnibox.json
    python backup_cli.py import backups/onnibox.json
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from onnibox.database import SessionLocal, init_db
from onnibox.errors import OnniBoxError
from onnibox.logging_config import configure_logging
from onnibox.services.backup import export_backup, import_backup, read_backup_file

logger = logging.getLogger("backup_cli")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="OnniBox JSON backup")
    parser.add_argument("command", choices=["export", "import"])
    parser.add_argument("path", type=Path, help="Backup file")
    args = parser.parse_args(argv)

    configure_logging()
    init_db()
    db = SessionLocal()
    try:
        if args.command == "export":
            args.path.parent.mkdir(parents=True, exist_ok=True)
            with open(args.path, "w", encoding="utf-8") as fh:
                json.dump(export_backup(db), fh, ensure_ascii=False, indent=2)
            print(f"[OK] Backup written to {args.path}")
        else:
            counts = import_backup(db, read_backup_file(args.path))
            db.commit()
            print(f"[OK] Restored {sum(counts.values())} rows from {args.path}")
    except (OnniBoxError, OSError, json.JSONDecodeError) as e:
        db.rollback()
        logger.error("[BACKUP] %s failed: %s", args.command, e)
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
