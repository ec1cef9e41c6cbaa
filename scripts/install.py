#!/usr/bin/env python3
"""Unattended install: database, site settings and admin account.

Usage:
    python scripts/install.py --dbdriver sqlite --dbname elgg.db \
        --sitename "My site" --wwwroot http://localhost:8000/ --dataroot /var/elgg-data \
        --admin-username admin --admin-email admin@example.com --admin-password secret123
"""
from __future__ import annotations

import argparse
import sys

from elgg.core.logging import setup_logging
from elgg.install import Installer


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Install the site non-interactively.")
    parser.add_argument("--settings-file", default=None, help="Settings file to write (default: SETTINGS_FILE)")
    parser.add_argument("--dbdriver", default="postgresql+psycopg")
    parser.add_argument("--dbuser", default="")
    parser.add_argument("--dbpassword", default="")
    parser.add_argument("--dbname", required=True)
    parser.add_argument("--dbhost", default="localhost")
    parser.add_argument("--dbport", default=None)
    parser.add_argument("--sitename", default="New Elgg site")
    parser.add_argument("--siteemail", default="")
    parser.add_argument("--wwwroot", required=True)
    parser.add_argument("--path", default=None)
    parser.add_argument("--dataroot", required=True)
    parser.add_argument("--language", default="en")
    parser.add_argument("--siteaccess", type=int, default=2)
    parser.add_argument("--admin-displayname", default="Administrator")
    parser.add_argument("--admin-username", required=True)
    parser.add_argument("--admin-email", required=True)
    parser.add_argument("--admin-password", required=True)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    setup_logging()
    args = parse_args(argv)
    installer = Installer(settings_file=args.settings_file)

    submissions = {
        "database": {
            "dbdriver": args.dbdriver,
            "dbuser": args.dbuser,
            "dbpassword": args.dbpassword,
            "dbname": args.dbname,
            "dbhost": args.dbhost,
            "dbport": args.dbport,
        },
        "settings": {
            "sitename": args.sitename,
            "siteemail": args.siteemail,
            "wwwroot": args.wwwroot,
            "path": args.path or str(installer.install_path),
            "dataroot": args.dataroot,
            "language": args.language,
            "siteaccess": args.siteaccess,
        },
        "admin": {
            "displayname": args.admin_displayname,
            "email": args.admin_email,
            "username": args.admin_username,
            "password1": args.admin_password,
            "password2": args.admin_password,
        },
    }

    try:
        for step, params in submissions.items():
            result = installer.run(step, params)
            if result.step != step:
                print(f"Skipping {step}: install already past it")
                continue
            for message in result.messages:
                print(message)
            if not result.ok:
                for error in result.errors:
                    print(f"error: {error}", file=sys.stderr)
                return 1
    finally:
        installer.close()

    print("Installation complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
