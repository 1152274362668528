import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from frontdesk.auth.dependencies import get_current_user
from frontdesk.core import config
from frontdesk.database import Base, engine, ensure_appointment_schema, ensure_queue_schema
from frontdesk.models import appointment, doctor, queue_entry, user  # noqa: F401
from frontdesk.routes import appointment_routes, auth_routes, doctor_routes, queue_routes

config.validate_runtime_config()

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

app = FastAPI(title='Clinic Front Desk API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
        ensure_queue_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Clinic Front Desk API Running'}


staff_only = [Depends(get_current_user)]

app.include_router(auth_routes.router, prefix='/auth')
app.include_router(doctor_routes.router, prefix='/doctors', dependencies=staff_only)
app.include_router(appointment_routes.router, prefix='/appointments', dependencies=staff_only)
app.include_router(queue_routes.router, prefix='/queue', dependencies=staff_only)
