"""
WSGI config for plotbook project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "plotbook.settings")

application = get_wsgi_application()
