"""
FastAPI app with:
- Nominatim router include
- Startup wiring of the Nominatim client (options from environment / .env)
- Shutdown that drains pending cache writes and closes the HTTP session
"""

from __future__ import annotations
import logging

from dotenv import load_dotenv
from fastapi import FastAPI

load_dotenv()

from api.endpoints import router
from nominatim_client.module import NominatimModule, get_nominatim_module, set_nominatim_module

# Configure logging at the application level
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = FastAPI(title="Nominatim Geocoding API")
app.include_router(router)


@app.on_event("startup")
async def startup():
    set_nominatim_module(NominatimModule.for_root())


@app.on_event("shutdown")
async def shutdown():
    await get_nominatim_module().close()
    set_nominatim_module(None)
