from fastapi import FastAPI
from cms_admin.config import settings
from cms_admin.exceptions import install_exception_handlers
from cms_admin.logging_config import setup_logging
from cms_admin.middleware import RequestLogMiddleware
from cms_admin.routers import articles, categories

setup_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON)

app = FastAPI(
    title="CMS Admin - Articles & Categories",
    description="Admin panel module for managing articles, categories and their tags",
    version="1.0.0",
)

# Middleware
app.add_middleware(RequestLogMiddleware)

# Error translation
install_exception_handlers(app)

# Routers
app.include_router(articles.router)
app.include_router(categories.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
