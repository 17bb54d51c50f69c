#!/usr/bin/env python3
"""Check the SMTP configuration used for booking notifications.

Reads EMAIL_HOST, EMAIL_PORT, EMAIL_USER, EMAIL_PASS and EMAIL_FROM, opens
a connection (SSL on port 465, STARTTLS otherwise), logs in, and optionally
sends a test message to EMAIL_USER.

Usage:
    python backend/scripts/check_email.py
    python backend/scripts/check_email.py --send
"""

import argparse
import sys

from trek_shared.services.email_service import EmailService, EmailServiceError, SMTPSettings


def main() -> int:
    parser = argparse.ArgumentParser(description="Verify SMTP settings")
    parser.add_argument(
        "--send",
        action="store_true",
        help="Also send a test message to EMAIL_USER",
    )
    args = parser.parse_args()

    settings = SMTPSettings.from_env()
    print("\n📧 SMTP configuration")
    print(f"  Host:     {settings.host or '(not set)'}")
    print(f"  Port:     {settings.port} ({'SSL' if settings.use_ssl else 'STARTTLS'})")
    print(f"  User:     {settings.username or '(not set)'}")
    print(f"  Password: {'set' if settings.password else '(not set)'}")
    print(f"  From:     {settings.sender or '(not set)'}\n")

    if not settings.is_configured:
        print("❌ EMAIL_HOST and EMAIL_USER (or EMAIL_FROM) must be set")
        return 1

    service = EmailService(settings)
    try:
        service.verify_connection()
        print("✅ Connected and authenticated")
        if args.send:
            service.send_test_email()
            print(f"✅ Test message sent to {settings.username}")
    except EmailServiceError as e:
        print(f"❌ {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
