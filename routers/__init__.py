import fastapi
from . import admin, health

def include_routers(app: fastapi.FastAPI) -> fastapi.FastAPI:
    app.include_router(health.router)
    app.include_router(admin.router)
    return app
