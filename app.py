#!/usr/bin/env python3
"""
CareHub application entry point.

WSGI servers import `app` from this module; configuration comes from the
environment (see config.env.example). Importing it has no side effects:
create tables with `flask --app app init-db` and send the daily training
reminders with `flask --app app send-reminders`.

Running the module directly starts the development server on
CAREHUB_PORT (default 5000) after making sure the tables exist.
"""

import os
from carehub import create_app
from carehub.models import db

app = create_app()

if __name__ == '__main__':
    with app.app_context():
        db.create_all()
    app.run(debug=os.getenv('FLASK_DEBUG', 'True').lower() == 'true',
            host='0.0.0.0',
            port=int(os.getenv('CAREHUB_PORT', 5000)))
