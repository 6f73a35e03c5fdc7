# Overview: Flask extension instances for database, migrations and item change notifications.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .notifications import ChangeNotifier

db = SQLAlchemy()
migrate = Migrate()
notifier = ChangeNotifier()
