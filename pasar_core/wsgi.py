"""
WSGI config for PASAR.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'pasar_core.settings')

application = get_wsgi_application()
