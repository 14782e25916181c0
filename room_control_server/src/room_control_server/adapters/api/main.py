from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from room_control_core.domain.errors import StorageError

from room_control_server.adapters.api.routes import router

app = FastAPI(title="Room Control")
app.include_router(router)


@app.exception_handler(StorageError)
def storage_unavailable(_request: Request, exc: StorageError):
    return JSONResponse(status_code=503, content={"detail": f"storage unavailable: {exc}"})
