"""AWS Lambda entry point.

Mangum translates API Gateway events into ASGI requests for the same
FastAPI app uvicorn serves. Lifespan events are off under Lambda, so
logging is configured here instead.
"""

from mangum import Mangum

from readsync.main import app, check_settings, setup_logging

setup_logging()
check_settings()

handler = Mangum(app, lifespan="off")
