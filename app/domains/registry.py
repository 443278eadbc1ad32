from __future__ import annotations
from typing import Dict

from app.domains.base import DomainAdapter
from app.domains.gemstone_jewellery import GemstoneJewelleryAdapter
from app.domains.gemstones import GemstonesAdapter
from app.domains.rudraksha import RudrakshaAdapter

_DOMAINS: Dict[str, DomainAdapter] = {
    a.key: a for a in (GemstonesAdapter(), GemstoneJewelleryAdapter(), RudrakshaAdapter())
}

def get_domain_adapter(domain: str) -> DomainAdapter:
    key = domain.lower().strip()
    if key not in _DOMAINS:
        raise KeyError(f"No domain adapter registered for domain={domain}")
    return _DOMAINS[key]

def supported_domains() -> list[str]:
    return sorted(_DOMAINS.keys())
