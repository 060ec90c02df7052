"""Allow ``python -m anamnesis_engine.cli``."""

from anamnesis_engine.cli import app

app()
