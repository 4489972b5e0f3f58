# wsgi.py
"""
Production WSGI entry point

Serve ``wsgi:application`` with a WSGI server.
"""

import os

from app import create_app

application = create_app()

if __name__ == '__main__':
    application.run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))
