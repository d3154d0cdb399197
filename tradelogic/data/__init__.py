"""
Data layer for the TradeLogic workbench.

Modules
-------
models.py       Pydantic request, verdict, consistency and config models.
validation.py   Capital/tier advisory and submission gating.
schemas.py      Response-format contract and response validation.
"""
