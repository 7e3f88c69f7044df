"""
WSGI config for the shiftbook project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'shiftbook.settings')

application = get_wsgi_application()
