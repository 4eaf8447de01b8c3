#!/usr/bin/env python
"""
Command line entry point for the clinic backend.

Sets ``clinic.settings`` as the default settings module and hands over
to Django's management utility (``runserver``, ``migrate``,
``ensure_test_users``, ``clear_old_logs`` and friends).
"""
import os
import sys


def main() -> None:
    """Run administrative tasks for the clinic backend."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'clinic.settings')
    try:
        from django.core.management import execute_from_command_line  # type: ignore
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Install the project with "
            "`pip install -e .` inside an activated virtual environment."
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
