from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from inventory_health.config import configure_logging
from inventory_health.routers import shops

configure_logging()

app = FastAPI(title='Shopify Inventory Health')

app.include_router(shops.router)


@app.get('/health', response_class=PlainTextResponse)
def health_check() -> str:
    return 'ok'


@app.get('/robots.txt', response_class=PlainTextResponse)
def robots_txt() -> str:
    return 'User-agent: *\nDisallow: /\n'
