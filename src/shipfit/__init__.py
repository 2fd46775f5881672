"""
shipfit - EVE Online Ship Fitting Calculator

Builds ship fittings, computes their stats (fitting resources, capacitor
stability, damage, tank, navigation, targeting), overlays support skill
bonuses, plans skill training, and reads and writes the EFT text format.

Usage as library:
    from shipfit.fitting import FittingSession, import_eft
    from shipfit.services.type_data import open_type_provider

    async with open_type_provider() as provider:
        result = await import_eft(eft_text, provider)

    session = FittingSession()
    session.import_fitting(result.fitting, result.ship)
    print(session.stats.total_ehp)

Usage as CLI:
    python -m shipfit eft-check fit.eft
    python -m shipfit stats fit.eft --skills all_v

Package structure:
    shipfit/
    ├── core/       # Settings, logging, retry, ESI HTTP client
    ├── models/     # Type data, fitting and stats records
    ├── fitting/    # Calculators, EFT codec, session, storage
    ├── services/   # Type data provider
    └── commands/   # CLI command implementations
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
