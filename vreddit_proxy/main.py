import logging

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from vreddit_proxy.configs import settings
from vreddit_proxy.routes import media_router

logging.basicConfig(level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
app = FastAPI()
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


# The media router ends with a catch-all route, so it must be included last.
app.include_router(media_router, tags=["media"])


def run():
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8888, log_level="info")


if __name__ == "__main__":
    run()
