from fastapi import FastAPI
from .routes import vehicles, events, vendors

app = FastAPI(title="Recon Pipeline API", version="0.1.0")

app.include_router(vehicles.router, prefix="/vehicles", tags=["vehicles"])
app.include_router(events.router, prefix="/events", tags=["events"])
app.include_router(vendors.router, prefix="/vendors", tags=["vendors"])
