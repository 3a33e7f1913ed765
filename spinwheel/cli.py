# spinwheel/cli.py
from decimal import Decimal
from urllib.parse import quote

import click
import pandas as pd
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .model import PRIZE_TYPES, Prize
from .services.promo_service import MAX_CODES_PER_BATCH, issue_promo_codes

@click.command("generate-codes")
@click.option("--count", default=50, show_default=True, type=click.IntRange(1, MAX_CODES_PER_BATCH))
@click.option("--campaign", default="Flyer", show_default=True)
@click.option("--out", type=click.Path(dir_okay=False, writable=True), default=None,
              help="CSV file to write; stdout when omitted")
@with_appcontext
def generate_codes(count, campaign, out):
    rows = issue_promo_codes(count, current_app.config["HMAC_SECRET"], campaign=campaign)
    base = current_app.config["PUBLIC_SITE_BASE_URL"].rstrip("/")
    df = pd.DataFrame(
        [{"code": r.code, "campaign": r.campaign, "qr_url": f"{base}/spin?c={quote(r.code)}"} for r in rows],
        columns=["code", "campaign", "qr_url"],
    )
    if out:
        df.to_csv(out, index=False)
        click.echo(f"{len(df)} codes written to {out}", err=True)
    else:
        click.echo(df.to_csv(index=False), nl=False)

@click.command("create-prize")
@click.option("--name", required=True)
@click.option("--type", "ptype", required=True, type=click.Choice(PRIZE_TYPES))
@click.option("--value", required=True, type=click.FloatRange(min=0))
@click.option("--weight", default=1.0, show_default=True, type=click.FloatRange(min=0))
@click.option("--stock", default=None, type=click.IntRange(min=0), help="omit for unlimited")
@with_appcontext
def create_prize(name, ptype, value, weight, stock):
    if ptype == "percent" and value > 100:
        raise click.BadParameter("percent prizes must be <= 100", param_hint="--value")
    p = Prize(name=name.strip(), type=ptype, value=Decimal(str(value)), weight=weight, stock=stock, active=True)
    db.session.add(p); db.session.commit()
    click.echo(f"Prize created: {p.id} {p.name}")

def register_cli(app):
    app.cli.add_command(generate_codes)
    app.cli.add_command(create_prize)
