import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from staxchange.config import settings
from staxchange.api.globals import github_client
from staxchange.api.routes import system, github, conversion, export

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

ALLOWED_ORIGINS = [
  'http://localhost:3000',
  'http://localhost:3001',
  'http://localhost:5173',
  'http://localhost:8080',
  'http://127.0.0.1:3000',
  'http://127.0.0.1:5173'
]
if settings.frontend_url:
  ALLOWED_ORIGINS.append(settings.frontend_url)


@asynccontextmanager
async def lifespan(app: FastAPI):
  logger.info('Backend started on %s:%s', settings.backend_host, settings.backend_port)
  if not settings.llm_configured:
    logger.warning('OPENROUTER_API_KEY is not set; conversions will fail until it is configured')
  yield
  await github_client.aclose()


app = FastAPI(
  title='StaxChange Conversion Backend',
  version='0.1.0',
  description='Converts GitHub repositories to a target language/framework/database stack with an LLM.',
  lifespan=lifespan
)

# CORS
app.add_middleware(
  CORSMiddleware,
  allow_origins=ALLOWED_ORIGINS,
  allow_credentials=True,
  allow_methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
  allow_headers=['*']
)

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
  logger.error(f"Global exception: {exc}", exc_info=True)
  return JSONResponse(
    status_code=500,
    content={"message": "Internal Server Error", "detail": str(exc)},
  )

# Include Routers
app.include_router(system.router, tags=['System'])
app.include_router(github.router, tags=['GitHub'])
app.include_router(conversion.router, tags=['Conversion'])
app.include_router(export.router, tags=['Export'])

@app.get('/')
async def root():
  return {"message": "StaxChange Conversion Backend API v0.1.0"}
