# memer/services/registry.py
import logging
import random
from dataclasses import dataclass
from typing import Optional

from ..database.ledger import Ledger
from ..utils.config import Config
from .activity_service import ActivityService
from .admin_service import AdminService
from .cooldown_service import CooldownGate
from .earning_service import EarningService
from .economy_service import EconomyService
from .freemium_service import FreemiumService
from .game_service import GameService
from .shop_service import ShopService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    ledger: Ledger
    economy: EconomyService
    earning: EarningService
    games: GameService
    freemium: FreemiumService
    shop: ShopService
    admin: AdminService
    activity: ActivityService


def build_services(ledger: Ledger, config: Config, rng: Optional[random.Random] = None) -> Services:
    """Wire every service to one ledger, random source and cooldown table."""
    cooldowns = CooldownGate(config.cooldown_overrides)
    shared = dict(config=config, rng=rng, cooldowns=cooldowns)
    economy = EconomyService(ledger, **shared)
    services = Services(
        ledger=ledger,
        economy=economy,
        earning=EarningService(ledger, **shared),
        games=GameService(ledger, **shared),
        freemium=FreemiumService(ledger, **shared),
        shop=ShopService(ledger, **shared),
        admin=AdminService(ledger, **shared),
        activity=ActivityService(ledger, economy=economy, **shared),
    )
    logger.info(f"Loaded economy services on {type(ledger).__name__}")
    return services
