from typing import List, Optional, Dict, Any, Callable, Union
from uuid import UUID
import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from ..entities.activity import Application, Favorite, ViewingEvent
from ..entities.listing import Listing
from ..entities.recommendation import PreferenceProfile, ScoredListing
from ..entities.search_filters import SearchFilters
from ..entities.user import UserProfile
from ..repositories.activity_repository import ActivityRepository
from ..repositories.listing_repository import ListingRepository
from .candidate_filter import CandidateFilter
from .preference_extractor import PreferenceExtractor
from .recommendation_config import RecommendationConfig
from .scoring_engine import ScoringEngine, ScoringContext
from .similarity_calculator import SimilarityCalculator, SimilarUser

FilterInput = Union[SearchFilters, Dict[str, Any], None]


@dataclass
class UserActivity:
    """One user's activity plus every listing it references."""
    applications: List[Application] = field(default_factory=list)
    favorites: List[Favorite] = field(default_factory=list)
    viewings: List[ViewingEvent] = field(default_factory=list)
    listings_by_id: Dict[UUID, Listing] = field(default_factory=dict)


class RecommendationService:
    """Ranks available listings for a user.

    Every call fetches its own data from the repositories and builds fresh
    ScoredListing values; no scoring state is kept between calls.
    """

    def __init__(self,
                 listing_repository: ListingRepository,
                 activity_repository: ActivityRepository,
                 config: Optional[RecommendationConfig] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.listing_repository = listing_repository
        self.activity_repository = activity_repository
        self.config = config or RecommendationConfig()
        self.clock = clock or datetime.now

        self.logger = logging.getLogger(__name__)

        self.preference_extractor = PreferenceExtractor(self.config)
        self.similarity_calculator = SimilarityCalculator(self.config)
        self.scoring_engine = ScoringEngine(self.config)
        self.candidate_filter = CandidateFilter(self.config)

    async def recommend(self,
                        filters: FilterInput = None,
                        user: Optional[UserProfile] = None,
                        limit: Optional[int] = None) -> List[ScoredListing]:
        """
        Score and rank available listings matching the filters.

        Args:
            filters: SearchFilters or a raw filter mapping; bad values are skipped
            user: Subject user; without one only the market score ranks listings
            limit: Optional smaller cap than config.max_results

        Returns:
            At most config.max_results scored listings, best first
        """
        try:
            ranked, _, _ = await self._score_candidates(filters, user)
            results = ranked[:self._cap(limit, self.config.max_results, self.config.max_results)]
            self.logger.info(
                f"Recommended {len(results)} of {len(ranked)} candidates "
                f"for user {user.id if user else 'anonymous'}"
            )
            return results
        except Exception as e:
            self.logger.error(f"Recommendation generation failed: {e}")
            return []

    async def get_similar_properties(self, listing: Listing, limit: int = 5) -> List[Listing]:
        """Available listings of the same property type, most similar first; never the source."""
        try:
            limit = self._cap(limit, 5)
            if listing is None or limit == 0:
                return []

            pool = await self.listing_repository.get_all_active()
            source_type = listing.property_type.strip().lower()
            scored = []
            for candidate in pool:
                if candidate.id == listing.id or not candidate.is_available():
                    continue
                if candidate.property_type.strip().lower() != source_type:
                    continue
                similarity = self.similarity_calculator.listing_similarity(listing, candidate)
                scored.append((similarity, candidate))

            scored.sort(key=lambda item: (-item[0], item[1].created_at, str(item[1].id)))
            return [candidate for _, candidate in scored[:limit]]
        except Exception as e:
            self.logger.error(f"Similar properties generation failed for {getattr(listing, 'id', None)}: {e}")
            return []

    async def get_trending_properties(self, limit: int = 10) -> List[Listing]:
        """Available listings ranked by viewing events inside the trailing window."""
        try:
            limit = self._cap(limit, 10)
            if limit == 0:
                return []

            now = self.clock()
            viewings = await self.activity_repository.get_viewings(since=self._window_start(now))
            counts = Counter()
            latest: Dict[UUID, datetime] = {}
            for viewing in viewings:
                if not self._in_window(viewing.created_at, now):
                    continue
                counts[viewing.listing_id] += 1
                if viewing.listing_id not in latest or viewing.created_at > latest[viewing.listing_id]:
                    latest[viewing.listing_id] = viewing.created_at
            if not counts:
                return []

            listings = await self.listing_repository.get_by_ids(list(counts))
            trending = [listing for listing in listings if listing.is_available() and counts[listing.id] > 0]
            trending.sort(key=lambda listing: (-counts[listing.id], -latest[listing.id].timestamp(), str(listing.id)))
            return trending[:limit]
        except Exception as e:
            self.logger.error(f"Trending properties generation failed: {e}")
            return []

    async def get_personalized_recommendations(self, user: Optional[UserProfile], limit: int = 10) -> List[Listing]:
        """Personalized ranking for tenants; landlords get trending listings."""
        if user is None or not user.is_tenant():
            return await self.get_trending_properties(limit)
        scored = await self.get_personalized_scored(user, limit)
        return [item.listing for item in scored]

    async def get_personalized_scored(self, user: UserProfile, limit: int = 10) -> List[ScoredListing]:
        """The scored pipeline without filters, boosted by favorites and viewing intensity."""
        try:
            limit = self._cap(limit, 10)
            if limit == 0:
                return []
            ranked, context, activity = await self._score_candidates(None, user)
            boosted = [self._apply_personal_boosts(item, context.profile, activity) for item in ranked]
            results = self.scoring_engine.rank(boosted)[:limit]
            self.logger.info(f"Personalized {len(results)} recommendations for user {user.id}")
            return results
        except Exception as e:
            self.logger.error(f"Personalized recommendation failed for user {getattr(user, 'id', None)}: {e}")
            return []

    # === PIPELINE ===

    async def _score_candidates(self, filters: FilterInput, user: Optional[UserProfile]):
        now = self.clock()
        search_filters = filters if isinstance(filters, SearchFilters) else SearchFilters.from_dict(filters)

        pool = await self.listing_repository.get_all_active()
        candidates = self.candidate_filter.apply(pool, search_filters, now)
        if not candidates:
            self.logger.debug(f"No candidates left after filtering {len(pool)} listings")
            return [], ScoringContext(), UserActivity()

        context = ScoringContext(
            recent_view_counts=await self._recent_view_counts(now),
            cohort_prices=self.scoring_engine.build_cohort_index(pool)
        )
        activity = UserActivity(listings_by_id={listing.id: listing for listing in pool})
        if user is not None:
            activity = await self._load_user_activity(user, activity.listings_by_id)
            context.profile = self.preference_extractor.extract(
                user, activity.applications, activity.favorites, activity.viewings, activity.listings_by_id
            )
            context.similar_users = await self._find_similar_users(user, activity, now)

        return self.scoring_engine.score_all(candidates, context), context, activity

    async def _load_user_activity(self, user: UserProfile, known: Dict[UUID, Listing]) -> UserActivity:
        applications = await self.activity_repository.get_applications(user.id)
        favorites = await self.activity_repository.get_favorites(user.id)
        viewings = await self.activity_repository.get_viewings(user.id)
        listings_by_id = await self._with_referenced_listings(
            dict(known), [record.listing_id for record in applications + favorites + viewings]
        )
        return UserActivity(applications, favorites, viewings, listings_by_id)

    async def _find_similar_users(self, user: UserProfile, activity: UserActivity, now: datetime) -> List[SimilarUser]:
        """Scan every tenant's applications and favorites for overlap with the subject user.

        Recomputed on each call; a precomputed peer index would replace this at scale.
        """
        subject = self.similarity_calculator.user_footprint(
            activity.applications, activity.favorites, activity.listings_by_id
        )
        if not subject:
            return []

        tenant_ids = {tenant.id for tenant in await self.activity_repository.get_tenants() if tenant.id != user.id}
        applications_by_user = defaultdict(list)
        for app in await self.activity_repository.get_applications():
            if app.user_id in tenant_ids:
                applications_by_user[app.user_id].append(app)
        favorites_by_user = defaultdict(list)
        for fav in await self.activity_repository.get_favorites():
            if fav.user_id in tenant_ids:
                favorites_by_user[fav.user_id].append(fav)

        listings_by_id = await self._with_referenced_listings(
            dict(activity.listings_by_id),
            [fav.listing_id for favs in favorites_by_user.values() for fav in favs]
        )

        peers = []
        for peer_id in set(applications_by_user) | set(favorites_by_user):
            peer_apps = applications_by_user.get(peer_id, [])
            peer_favs = favorites_by_user.get(peer_id, [])
            footprint = self.similarity_calculator.user_footprint(peer_apps, peer_favs, listings_by_id)
            peers.append(SimilarUser(
                user_id=peer_id,
                similarity=self.similarity_calculator.user_similarity(subject, footprint, now),
                applied_listing_ids={app.listing_id for app in peer_apps},
                favorite_listing_ids={fav.listing_id for fav in peer_favs}
            ))

        similar = self.similarity_calculator.rank_similar_users(peers)
        self.logger.debug(f"Found {len(similar)} similar users for user {user.id}")
        return similar

    async def _recent_view_counts(self, now: datetime) -> Dict[UUID, int]:
        viewings = await self.activity_repository.get_viewings(since=self._window_start(now))
        return dict(Counter(v.listing_id for v in viewings if self._in_window(v.created_at, now)))

    async def _with_referenced_listings(self, listings_by_id: Dict[UUID, Listing],
                                        listing_ids: List[UUID]) -> Dict[UUID, Listing]:
        missing = sorted({listing_id for listing_id in listing_ids if listing_id not in listings_by_id}, key=str)
        if missing:
            for listing in await self.listing_repository.get_by_ids(missing):
                listings_by_id[listing.id] = listing
        return listings_by_id

    def _apply_personal_boosts(self, item: ScoredListing, profile: Optional[PreferenceProfile],
                               activity: UserActivity) -> ScoredListing:
        cfg = self.config
        boost = 0.0
        reasons = list(item.match_reasons)
        tags = list(item.recommendation_tags)

        favorite_listings = [
            activity.listings_by_id[fav.listing_id] for fav in activity.favorites
            if fav.listing_id in activity.listings_by_id and fav.listing_id != item.listing.id
        ]
        if favorite_listings:
            closest = max(self.similarity_calculator.listing_similarity(fav, item.listing) for fav in favorite_listings)
            if closest > 0:
                boost += closest * cfg.favorite_similarity_weight
                reasons.append("Similar to a listing you saved")
                tags.append("similar_to_favorites")

        if profile is not None and profile.avg_viewings_per_listing >= cfg.viewing_intensity_threshold:
            viewed_kinds = {
                (listing.property_type.lower(), listing.city.lower())
                for listing in (activity.listings_by_id.get(v.listing_id) for v in activity.viewings) if listing
            }
            if (item.listing.property_type.lower(), item.listing.city.lower()) in viewed_kinds:
                boost += cfg.viewing_intensity_points
                reasons.append("Like the listings you keep coming back to")

        if boost == 0:
            return item
        total = item.total_score + boost
        return replace(item, total_score=total, relevance_score=self.scoring_engine.relevance(total),
                       match_reasons=tuple(reasons), recommendation_tags=tuple(dict.fromkeys(tags)))

    # === UTILITY METHODS ===

    def _window_start(self, now: datetime) -> datetime:
        return now - timedelta(days=self.config.trending_window_days)

    def _in_window(self, moment: datetime, now: datetime) -> bool:
        return self._window_start(now) <= moment <= now

    def _cap(self, limit, default: int, ceiling: Optional[int] = None) -> int:
        if limit is None or isinstance(limit, bool):
            value = default
        else:
            try:
                value = int(limit)
            except (TypeError, ValueError):
                self.logger.warning(f"Invalid limit {limit!r}, using {default}")
                value = default
        value = max(value, 0)
        return min(value, ceiling) if ceiling is not None else value
