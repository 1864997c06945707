"""
Plan configuration for seller subscription tiers.

This module is the single source of truth for plan limits and features.
It lives in core/ so the resolver, the service layer and the API can all
import from it without creating circular dependencies.
"""

from types import MappingProxyType

from core.domain.subscription import FeatureBundle, Plan, SearchPlacement, VerificationLevel

# Bump when any number below changes; stored alongside subscription snapshots
PLAN_TABLE_VERSION = 1

FREE_PLAN_DURATION_DAYS = 7
PAID_PLAN_DURATION_DAYS = 30

PLAN_FEATURES: MappingProxyType = MappingProxyType({
    Plan.FREE: FeatureBundle(
        max_listings=1,
        max_photos_per_listing=1,
        max_videos_per_listing=0,
        listing_duration_days=7,
        boost_duration_days=0,
        boosts_per_month=0,
        spotlight_duration_days=0,
        spotlights_per_month=0,
        verification_level=VerificationLevel.BASIC,
        search_placement=SearchPlacement.BASIC,
        badges=frozenset({"Free User"}),
    ),
    Plan.TROT: FeatureBundle(
        max_listings=10,
        max_photos_per_listing=10,
        max_videos_per_listing=1,
        listing_duration_days=30,
        boost_duration_days=0,
        boosts_per_month=0,
        spotlight_duration_days=0,
        spotlights_per_month=0,
        verification_level=VerificationLevel.NONE,
        search_placement=SearchPlacement.NONE,
        badges=frozenset({"Basic Seller"}),
    ),
    Plan.GALLOP: FeatureBundle(
        max_listings=25,
        max_photos_per_listing=20,
        max_videos_per_listing=3,
        listing_duration_days=30,
        boost_duration_days=5,
        boosts_per_month=1,
        spotlight_duration_days=3,
        spotlights_per_month=2,
        verification_level=VerificationLevel.NONE,
        search_placement=SearchPlacement.BASIC,
        featured_listings=True,
        analytics=True,
        social_media_sharing=True,
        badges=frozenset({"Gallop Seller"}),
    ),
    Plan.ROYAL_STALLION: FeatureBundle(
        max_listings=50,
        max_photos_per_listing=30,
        max_videos_per_listing=5,
        listing_duration_days=30,
        boost_duration_days=7,
        boosts_per_month=3,
        spotlight_duration_days=7,
        spotlights_per_month=5,
        verification_level=VerificationLevel.PREMIUM,
        search_placement=SearchPlacement.PREMIUM,
        priority_placement=True,
        featured_listings=True,
        virtual_tours=True,
        analytics=True,
        social_media_sharing=True,
        serious_buyer_access=True,
        badges=frozenset({"Royal Stallion Seller"}),
    ),
})

# Prices in paise (INR); Free never reaches the payment gateway
PLAN_PRICES: MappingProxyType = MappingProxyType({
    Plan.FREE: 0,
    Plan.TROT: 199900,
    Plan.GALLOP: 499900,
    Plan.ROYAL_STALLION: 999900,
})

PLAN_CURRENCY = "INR"

PLAN_DESCRIPTIONS: MappingProxyType = MappingProxyType({
    Plan.FREE: "Try the marketplace with a single week-long listing",
    Plan.TROT: "For small stables listing a handful of horses",
    Plan.GALLOP: "Featured listings, boosts and analytics for growing sellers",
    Plan.ROYAL_STALLION: "Premium verification, spotlights and virtual stable tours",
})
