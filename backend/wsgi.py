# Entry point: FLASK_APP=wsgi.py (run from the backend directory).
import atexit

from oilpos import create_app
from oilpos.storage import get_storage

app = create_app()
atexit.register(get_storage(app).close)
