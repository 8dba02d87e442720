#!/usr/bin/env python
"""Django's command-line utility for administrative tasks."""
import os
import sys


def main():
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "plotbook.settings")
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc

    # `runserver` without an address listens on $PORT (default 5000)
    if len(sys.argv) == 2 and sys.argv[1] == "runserver":
        sys.argv.append(f"0.0.0.0:{os.environ.get('PORT', '5000')}")

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
