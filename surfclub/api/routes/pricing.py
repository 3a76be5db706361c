"""
Price quotes. Nothing is reserved or stored.
"""

from fastapi import APIRouter, Depends

from surfclub.api.dependencies import get_pricing_engine
from surfclub.schemas.pricing import ActivityQuoteRequest, PackageQuoteRequest, QuoteResponse, StayQuoteRequest
from surfclub.services.pricing import PricingEngine

router = APIRouter(prefix="/pricing", tags=["Pricing"])


@router.post("/activity", response_model=QuoteResponse)
async def activity_quote(request: ActivityQuoteRequest, pricing: PricingEngine = Depends(get_pricing_engine)):
    return pricing.activity_quote(request.people_count).as_dict(pricing.tax_rate)


@router.post("/package", response_model=QuoteResponse)
async def package_quote(request: PackageQuoteRequest, pricing: PricingEngine = Depends(get_pricing_engine)):
    """409 when the accommodation cannot hold the group."""
    quote = pricing.package_quote(request.package_type, request.accommodation_type, request.people_count)
    return quote.as_dict(pricing.tax_rate)


@router.post("/stay", response_model=QuoteResponse)
async def stay_quote(request: StayQuoteRequest, pricing: PricingEngine = Depends(get_pricing_engine)):
    quote = pricing.stay_quote(
        request.accommodation_type,
        request.people_count,
        request.nights_count,
        includes_meals=request.includes_meals,
        extended_stay=request.extended_stay,
    )
    return quote.as_dict(pricing.tax_rate)
