from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recordqa.core.constants import API_VERSION, CORS_ORIGINS
from recordqa.nlq.routes import router as query_router
from recordqa.utils.log_utils import setup_logging

setup_logging()

app = FastAPI(title="RecordQA API", version=API_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(query_router)


@app.get("/")
def root():
    return {"status": "RecordQA API is running", "version": API_VERSION}
