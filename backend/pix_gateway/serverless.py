"""
Serverless entry point (AWS Lambda / API Gateway style hosts).

Wraps the FastAPI application with Mangum; point the function handler at
``backend.pix_gateway.serverless.handler``.
"""

from mangum import Mangum

from .main import app

# Lifespan events are not delivered reliably between invocations; the
# Instapay client is created lazily and reused for the life of the instance.
handler = Mangum(app, lifespan="off")
