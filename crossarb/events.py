"""
Team, date and event extraction from market text.

Titles from different platforms name the same game very differently
("Baltimore at Green Bay Winner?", "NFL: Ravens vs. Packers", "BAL @ GB"). This
module reduces them to an EventSignature (sorted canonical team pair plus an
optional date) and resolves generic outcomes ("Yes"/"No") to the team they back.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from . import config
from .models import EventSignature, MarketRecord, Outcome, TeamResolution
from .teams import (
    ABBREV_INDEX,
    ALL_SPORTS,
    CITY_INDEX,
    NICKNAME_INDEX,
    TEAMS_BY_ID,
    Team,
    detect_sport,
    disambiguate,
    sport_of,
)
from .utils.helpers import parse_date

logger = logging.getLogger(__name__)

# Weather/climate "min/max" markets mention cities without being games
NEGATIVE_TERMS = re.compile(
    r"\b(min|minimum|max|maximum|arctic|sea ice|climate|weather|temperature)\b", re.I
)
SPORTS_VOCABULARY = re.compile(
    r"\b(sports?|nfl|nba|nhl|ncaa|ncaaf|ncaab|cfb|cbb|football|basketball|hockey|game|match|vs|at)\b|@",
    re.I,
)

# "NO" is usually the Yes/No answer and "LA" usually prefixes a nickname
ABBREV_BLOCKLIST = {"NO", "LA"}
ABBREV_TOKEN = re.compile(r"\b[A-Z]{2,3}\b")

YES_NO = {"yes", "no"}

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

ISO_DATE = re.compile(r"(?<!\d)(\d{4})-(\d{2})-(\d{2})(?!\d)")
TICKER_DATE = re.compile(
    r"(?<!\d)(\d{2})(JAN|FEB|MAR|APR|MAY|JUN|JUL|AUG|SEP|OCT|NOV|DEC)(\d{2})(?!\d)", re.I
)
SLASH_DATE = re.compile(r"(?<!\d)(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})(?!\d)")
MONTH_NAME_DATE = re.compile(
    r"\b(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?\s+(\d{1,2})(?:st|nd|rd|th)?"
    r"(?:,?\s+(\d{4}))?(?!\d)",
    re.I,
)


def _alias_pattern(alias: str) -> re.Pattern:
    return re.compile(r"(?<![a-z0-9])" + re.escape(alias) + r"(?![a-z0-9])")


def _compile_aliases(index: Dict[str, List[Team]]) -> List[Tuple[str, re.Pattern]]:
    aliases = sorted(index, key=len, reverse=True)
    return [(alias, _alias_pattern(alias)) for alias in aliases]


NICKNAME_PATTERNS = _compile_aliases(NICKNAME_INDEX)
CITY_PATTERNS = _compile_aliases(CITY_INDEX)


@dataclass
class _Hit:
    position: int
    alias: str
    candidates: List[Team]
    kind: str  # 'nickname', 'city' or 'abbrev'
    consumed: bool = False


@dataclass(frozen=True)
class PairResolution:
    """Team resolution for two outcomes grouped under one event."""

    status: TeamResolution
    team_a: Optional[str] = None
    team_b: Optional[str] = None


def _mask(text: str, start: int, end: int) -> str:
    return text[:start] + " " * (end - start) + text[end:]


def _scan(text: str, patterns: Iterable[Tuple[str, re.Pattern]], index: Dict[str, List[Team]],
          kind: str) -> Tuple[List[_Hit], str]:
    """Find aliases longest first, masking each match so shorter aliases can't reuse it."""
    hits = []
    for alias, pattern in patterns:
        if alias not in text:
            continue
        for match in list(pattern.finditer(text)):
            hits.append(_Hit(match.start(), alias, list(index[alias]), kind))
            text = _mask(text, match.start(), match.end())
    return hits, text


def _scan_abbreviations(original: str, masked: str) -> List[_Hit]:
    hits = []
    for match in ABBREV_TOKEN.finditer(original):
        token = match.group()
        if token in ABBREV_BLOCKLIST or token not in ABBREV_INDEX:
            continue
        if not masked[match.start():match.end()].strip():
            continue
        hits.append(_Hit(match.start(), token, list(ABBREV_INDEX[token]), "abbrev"))
    return hits


def _pair_cities_with_nicknames(nicknames: List[_Hit], cities: List[_Hit]) -> None:
    """A city next to its own nickname ("Minnesota Timberwolves") names that team once."""
    for nickname in nicknames:
        best = None
        for city in cities:
            if city.consumed:
                continue
            shared = [team for team in nickname.candidates if team in city.candidates]
            if not shared:
                continue
            # Prefer the closest city written before the nickname
            rank = (city.position > nickname.position, abs(city.position - nickname.position))
            if best is None or rank < best[0]:
                best = (rank, city, shared)
        if best:
            _, city, shared = best
            city.consumed = True
            nickname.candidates = shared


def _shared_sport(hits: Sequence[_Hit]) -> Optional[str]:
    if not hits:
        return None
    common = set(ALL_SPORTS)
    for hit in hits:
        common &= {team.sport for team in hit.candidates}
    for sport in ALL_SPORTS:
        if sport in common:
            return sport
    return None


def extract_teams(text: str, sport: Optional[str] = None) -> List[str]:
    """
    Extract canonical team ids from free text, in order of first appearance.

    Args:
        text: Market title, outcome name or hint
        sport: Restrict and disambiguate to this sport ('nfl', 'nba', ...)

    Returns:
        Distinct canonical ids such as ['nfl:ravens', 'nfl:packers']
    """
    if not text or not text.strip():
        return []
    if NEGATIVE_TERMS.search(text) and not SPORTS_VOCABULARY.search(text):
        return []

    lowered = text.lower()
    nicknames, masked = _scan(lowered, NICKNAME_PATTERNS, NICKNAME_INDEX, "nickname")
    cities, masked = _scan(masked, CITY_PATTERNS, CITY_INDEX, "city")
    cities += _scan_abbreviations(text, masked)

    _pair_cities_with_nicknames(nicknames, cities)
    hits = nicknames + [city for city in cities if not city.consumed]

    if sport:
        for hit in hits:
            hit.candidates = [team for team in hit.candidates if team.sport == sport]
        hits = [hit for hit in hits if hit.candidates]

    hits.sort(key=lambda hit: hit.position)

    # Unambiguous hits first, so their sport can settle the ambiguous ones
    resolved: Dict[int, str] = {}
    for i, hit in enumerate(hits):
        if len(hit.candidates) == 1:
            resolved[i] = hit.candidates[0].id

    ambiguous = [hit for i, hit in enumerate(hits) if i not in resolved]
    fallback_sports = (detect_sport(text), _shared_sport(ambiguous))
    for i, hit in enumerate(hits):
        if i in resolved:
            continue
        team_id = disambiguate(
            hit.alias,
            known_teams=list(resolved.values()),
            sport_hint=sport,
            candidates=hit.candidates,
            fallback_sports=fallback_sports,
        )
        if team_id:
            resolved[i] = team_id

    teams: List[str] = []
    for i in range(len(hits)):
        team_id = resolved.get(i)
        if team_id and team_id not in teams:
            teams.append(team_id)
    return teams


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _find_date(text: str, today: Optional[date] = None) -> Optional[date]:
    if not text:
        return None

    for match in ISO_DATE.finditer(text):
        found = _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        if found:
            return found

    for match in TICKER_DATE.finditer(text):
        month = MONTHS[match.group(2).lower()]
        found = _safe_date(2000 + int(match.group(1)), month, int(match.group(3)))
        if found:
            return found

    for match in SLASH_DATE.finditer(text):
        year = int(match.group(3))
        if year < 100:
            year += 2000
        found = _safe_date(year, int(match.group(1)), int(match.group(2)))
        if found:
            return found

    for match in MONTH_NAME_DATE.finditer(text):
        month = MONTHS[match.group(1).lower()[:3]]
        if match.group(3):
            year = int(match.group(3))
        else:
            year = (today or date.today()).year
        found = _safe_date(year, month, int(match.group(2)))
        if found:
            return found

    return None


def extract_date(text: str, today: Optional[date] = None) -> Optional[str]:
    """
    Find the first valid date in text and return it as 'YYYY-MM-DD'.

    Forms tried, in order: ISO ('2025-12-18'), compressed ticker ('25DEC18'),
    slash ('12/18/2025', '12/18/25'), month name ('Dec 18, 2025', 'December 18').
    A month-name date without a year takes the current year.
    """
    found = _find_date(text, today)
    return found.isoformat() if found else None


def extract_event_signature(market: MarketRecord, sport: Optional[str] = None,
                            today: Optional[date] = None) -> Optional[EventSignature]:
    """
    Build the event signature for a market.

    Requires exactly two distinct teams of one sport in the title. The date comes
    from the title, then the id, then the link, then the explicit date field.
    """
    teams = extract_teams(market.title, sport)
    if len(teams) != 2:
        if len(teams) > 2:
            logger.debug(f"Too many teams in '{market.title[:60]}': {teams}")
        return None
    if sport_of(teams[0]) != sport_of(teams[1]):
        return None

    event_date = None
    for source in (market.title, market.id, market.link):
        event_date = _find_date(source, today)
        if event_date:
            break
    if event_date is None:
        event_date = parse_date(market.date)

    return EventSignature(teams=tuple(sorted(teams)), date=event_date)


def signatures_match(a: EventSignature, b: EventSignature,
                     tolerance_days: int = config.DATE_TOLERANCE_DAYS) -> bool:
    return a.matches(b, tolerance_days)


def _team_from_hint(hint: str, sport: Optional[str]) -> Optional[str]:
    if hint in TEAMS_BY_ID:
        return hint
    teams = extract_teams(hint, sport)
    return teams[0] if teams else None


def extract_team_from_outcome(
    outcome_name: str,
    title: str,
    event_teams: Optional[Sequence[str]] = None,
    hint: Optional[str] = None,
    sport: Optional[str] = None,
) -> Optional[str]:
    """
    Resolve the team an outcome backs.

    Priority:
        1. An explicit hint on the outcome
        2. A team named by the outcome itself ("Ravens")
        3. Yes/No with one team named in the title: "No" backs the named team,
           "Yes" backs the other event team
        4. Yes/No with two teams in the title: the first backs "Yes", the second "No"

    Returns:
        Canonical team id, or None if unresolvable
    """
    if sport is None and event_teams:
        sport = sport_of(event_teams[0])

    if hint:
        team = _team_from_hint(hint, sport)
        if team:
            return team

    name = (outcome_name or "").strip().lower()
    if name not in YES_NO:
        teams = extract_teams(outcome_name or "", sport)
        return teams[0] if teams else None

    title_teams = extract_teams(title, sport)
    if len(title_teams) == 1:
        named = title_teams[0]
        if name == "no":
            return named
        if event_teams and len(event_teams) == 2 and named in event_teams:
            others = [team for team in event_teams if team != named]
            return others[0] if others else None
        return None

    if len(title_teams) >= 2:
        return title_teams[0] if name == "yes" else title_teams[1]

    return None


def team_for_outcome(market: MarketRecord, index: int,
                     signature: EventSignature) -> Optional[str]:
    outcome: Outcome = market.outcomes[index]
    return extract_team_from_outcome(
        outcome.name,
        market.title,
        event_teams=signature.teams,
        hint=outcome.team_hint,
        sport=signature.sport,
    )


def resolve_outcome_pair(
    market_a: MarketRecord,
    index_a: int,
    market_b: MarketRecord,
    index_b: int,
    signature: EventSignature,
) -> PairResolution:
    """
    Decide whether two outcomes of one grouped event back opposing teams.

    Same team on both sides is rejected. Two different teams of the event are
    confirmed. Anything else is accepted as unresolved, since the markets were
    already grouped under the same event.
    """
    team_a = team_for_outcome(market_a, index_a, signature)
    team_b = team_for_outcome(market_b, index_b, signature)

    if team_a and team_b and team_a == team_b:
        return PairResolution(TeamResolution.REJECTED, team_a, team_b)

    if (team_a and team_b and team_a in signature.teams
            and team_b in signature.teams):
        return PairResolution(TeamResolution.CONFIRMED, team_a, team_b)

    return PairResolution(TeamResolution.UNRESOLVED_GROUPED, team_a, team_b)
