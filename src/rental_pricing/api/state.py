"""
Process-wide engine and rules service shared by the API routers.
"""
import logging

from ..config.settings import configure_logging, get_settings
from ..engine import PricingEngine
from ..services.rules_service import RulesService


logger = logging.getLogger(__name__)

settings = get_settings()
configure_logging(settings)

engine = PricingEngine(settings)
rules_service = RulesService()

if settings.rules_csv:
    if settings.rules_csv.exists():
        rules_service.load_csv(settings.rules_csv)
    else:
        logger.warning("Rules CSV %s not found; starting with no rules", settings.rules_csv)
