import os, sys, pytest
# Ensure backend directory is on path so 'steelshop' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from steelshop import create_app, get_db
from steelshop.models.user import Base
# Import all model modules to ensure tables are registered before create_all
import steelshop.models.customer  # noqa: F401
import steelshop.models.job_order  # noqa: F401
import steelshop.models.payroll  # noqa: F401

@pytest.fixture(scope='session', autouse=True)
def app_instance():
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app({'JWT_SECRET_KEY': 'test-secret-key-with-enough-length-0123456789'})
    # After app and blueprints are registered, ensure all tables exist
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app

@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()
