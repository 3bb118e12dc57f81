"""
Team lookup tables.

Every team is registered once with its sport, city (or school), nicknames and
the abbreviation platforms use in tickers and slugs. Canonical ids are
sport-qualified ("nfl:packers", "cbb:duke") so that a nickname shared across
leagues ("panthers", "kings", "cardinals") never collapses two franchises.

College programs are registered once and expanded into both football (cfb)
and basketball (cbb).
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from . import config

PRO_SPORTS = ("nfl", "nba", "nhl")
COLLEGE_SPORTS = ("cfb", "cbb")
ALL_SPORTS = PRO_SPORTS + COLLEGE_SPORTS

# College checks run before the generic "football"/"basketball" words
SPORT_DETECTION_ORDER = ("cfb", "cbb", "nfl", "nba", "nhl")
SPORT_KEYWORDS: List[Tuple[str, re.Pattern]] = [
    (sport, re.compile(config.SPORTS[sport].keywords, re.I)) for sport in SPORT_DETECTION_ORDER
]


@dataclass(frozen=True)
class Team:
    """A franchise or college program in one sport."""

    sport: str
    key: str
    name: str
    city: str
    nicknames: Tuple[str, ...]
    abbrev: str
    city_aliases: Tuple[str, ...] = field(default=())

    @property
    def id(self) -> str:
        return f"{self.sport}:{self.key}"

    @property
    def cities(self) -> Tuple[str, ...]:
        return (self.city,) + self.city_aliases


def _pro(sport: str, city: str, nickname: str, abbrev: str,
         aliases: Sequence[str] = (), city_aliases: Sequence[str] = ()) -> Team:
    key = nickname.replace(" ", "-")
    return Team(
        sport=sport,
        key=key,
        name=f"{city.title()} {nickname.title()}",
        city=city,
        nicknames=(nickname,) + tuple(aliases),
        abbrev=abbrev,
        city_aliases=tuple(city_aliases),
    )


NFL_TEAMS = [
    _pro("nfl", "arizona", "cardinals", "ari"),
    _pro("nfl", "atlanta", "falcons", "atl"),
    _pro("nfl", "baltimore", "ravens", "bal"),
    _pro("nfl", "buffalo", "bills", "buf"),
    _pro("nfl", "carolina", "panthers", "car"),
    _pro("nfl", "chicago", "bears", "chi"),
    _pro("nfl", "cincinnati", "bengals", "cin"),
    _pro("nfl", "cleveland", "browns", "cle"),
    _pro("nfl", "dallas", "cowboys", "dal"),
    _pro("nfl", "denver", "broncos", "den"),
    _pro("nfl", "detroit", "lions", "det"),
    _pro("nfl", "green bay", "packers", "gb"),
    _pro("nfl", "houston", "texans", "hou"),
    _pro("nfl", "indianapolis", "colts", "ind"),
    _pro("nfl", "jacksonville", "jaguars", "jax", aliases=("jags",)),
    _pro("nfl", "kansas city", "chiefs", "kc"),
    _pro("nfl", "las vegas", "raiders", "lv", city_aliases=("vegas",)),
    _pro("nfl", "los angeles", "chargers", "lac"),
    _pro("nfl", "los angeles", "rams", "lar"),
    _pro("nfl", "miami", "dolphins", "mia", aliases=("fins",)),
    _pro("nfl", "minnesota", "vikings", "min"),
    _pro("nfl", "new england", "patriots", "ne", aliases=("pats",)),
    _pro("nfl", "new orleans", "saints", "no", city_aliases=("nola",)),
    _pro("nfl", "new york", "giants", "nyg"),
    _pro("nfl", "new york", "jets", "nyj"),
    _pro("nfl", "philadelphia", "eagles", "phi", city_aliases=("philly",)),
    _pro("nfl", "pittsburgh", "steelers", "pit"),
    _pro("nfl", "san francisco", "49ers", "sf", aliases=("niners",)),
    _pro("nfl", "seattle", "seahawks", "sea"),
    _pro("nfl", "tampa bay", "buccaneers", "tb", aliases=("bucs",), city_aliases=("tampa",)),
    _pro("nfl", "tennessee", "titans", "ten"),
    _pro("nfl", "washington", "commanders", "was"),
]

NBA_TEAMS = [
    _pro("nba", "atlanta", "hawks", "atl"),
    _pro("nba", "boston", "celtics", "bos"),
    _pro("nba", "brooklyn", "nets", "bkn"),
    _pro("nba", "charlotte", "hornets", "cha"),
    _pro("nba", "chicago", "bulls", "chi"),
    _pro("nba", "cleveland", "cavaliers", "cle", aliases=("cavs",)),
    _pro("nba", "dallas", "mavericks", "dal", aliases=("mavs",)),
    _pro("nba", "denver", "nuggets", "den"),
    _pro("nba", "detroit", "pistons", "det"),
    _pro("nba", "golden state", "warriors", "gsw", aliases=("dubs",)),
    _pro("nba", "houston", "rockets", "hou"),
    _pro("nba", "indiana", "pacers", "ind"),
    _pro("nba", "los angeles", "clippers", "lac"),
    _pro("nba", "los angeles", "lakers", "lal"),
    _pro("nba", "memphis", "grizzlies", "mem", aliases=("grizz",)),
    _pro("nba", "miami", "heat", "mia"),
    _pro("nba", "milwaukee", "bucks", "mil"),
    _pro("nba", "minnesota", "timberwolves", "min", aliases=("wolves",)),
    _pro("nba", "new orleans", "pelicans", "nop", aliases=("pels",), city_aliases=("nola",)),
    _pro("nba", "new york", "knicks", "nyk"),
    _pro("nba", "oklahoma city", "thunder", "okc"),
    _pro("nba", "orlando", "magic", "orl"),
    _pro("nba", "philadelphia", "76ers", "phi", aliases=("sixers",), city_aliases=("philly",)),
    _pro("nba", "phoenix", "suns", "phx"),
    _pro("nba", "portland", "trail blazers", "por", aliases=("blazers",)),
    _pro("nba", "sacramento", "kings", "sac"),
    _pro("nba", "san antonio", "spurs", "sas"),
    _pro("nba", "toronto", "raptors", "tor"),
    _pro("nba", "utah", "jazz", "uta"),
    _pro("nba", "washington", "wizards", "was"),
]

NHL_TEAMS = [
    _pro("nhl", "anaheim", "ducks", "ana"),
    _pro("nhl", "boston", "bruins", "bos"),
    _pro("nhl", "buffalo", "sabres", "buf"),
    _pro("nhl", "calgary", "flames", "cgy"),
    _pro("nhl", "carolina", "hurricanes", "car", aliases=("canes",)),
    _pro("nhl", "chicago", "blackhawks", "chi"),
    _pro("nhl", "colorado", "avalanche", "col", aliases=("avs",)),
    _pro("nhl", "columbus", "blue jackets", "cbj"),
    _pro("nhl", "dallas", "stars", "dal"),
    _pro("nhl", "detroit", "red wings", "det"),
    _pro("nhl", "edmonton", "oilers", "edm"),
    _pro("nhl", "florida", "panthers", "fla"),
    _pro("nhl", "los angeles", "kings", "la"),
    _pro("nhl", "minnesota", "wild", "min"),
    _pro("nhl", "montreal", "canadiens", "mtl", aliases=("habs",)),
    _pro("nhl", "nashville", "predators", "nsh", aliases=("preds",)),
    _pro("nhl", "new jersey", "devils", "njd"),
    _pro("nhl", "new york", "islanders", "nyi", aliases=("isles",)),
    _pro("nhl", "new york", "rangers", "nyr"),
    _pro("nhl", "ottawa", "senators", "ott", aliases=("sens",)),
    _pro("nhl", "philadelphia", "flyers", "phi", city_aliases=("philly",)),
    _pro("nhl", "pittsburgh", "penguins", "pit", aliases=("pens",)),
    _pro("nhl", "san jose", "sharks", "sj"),
    _pro("nhl", "seattle", "kraken", "sea"),
    _pro("nhl", "st louis", "blues", "stl", city_aliases=("st. louis", "saint louis")),
    _pro("nhl", "tampa bay", "lightning", "tb", aliases=("bolts",), city_aliases=("tampa",)),
    _pro("nhl", "toronto", "maple leafs", "tor", aliases=("leafs",)),
    _pro("nhl", "utah", "mammoth", "uta"),
    _pro("nhl", "vancouver", "canucks", "van"),
    _pro("nhl", "vegas", "golden knights", "vgk", aliases=("knights",), city_aliases=("las vegas",)),
    _pro("nhl", "washington", "capitals", "wsh", aliases=("caps",)),
    _pro("nhl", "winnipeg", "jets", "wpg"),
]

# (school, nickname, abbreviation, extra nicknames, sports)
COLLEGE_PROGRAMS = [
    ("alabama", "crimson tide", "ala", ("tide", "bama"), COLLEGE_SPORTS),
    ("arizona", "wildcats", "ariz", (), COLLEGE_SPORTS),
    ("arkansas", "razorbacks", "ark", ("hogs",), COLLEGE_SPORTS),
    ("auburn", "tigers", "aub", (), COLLEGE_SPORTS),
    ("baylor", "bears", "bay", (), COLLEGE_SPORTS),
    ("cincinnati", "bearcats", "cin", (), COLLEGE_SPORTS),
    ("clemson", "tigers", "clem", (), COLLEGE_SPORTS),
    ("duke", "blue devils", "duke", (), COLLEGE_SPORTS),
    ("florida", "gators", "fla", (), COLLEGE_SPORTS),
    ("florida state", "seminoles", "fsu", ("noles",), COLLEGE_SPORTS),
    ("georgia", "bulldogs", "uga", ("dawgs",), COLLEGE_SPORTS),
    ("gonzaga", "bulldogs", "gonz", ("zags",), ("cbb",)),
    ("indiana", "hoosiers", "ind", (), COLLEGE_SPORTS),
    ("iowa", "hawkeyes", "iowa", (), COLLEGE_SPORTS),
    ("kansas", "jayhawks", "kan", (), COLLEGE_SPORTS),
    ("kentucky", "wildcats", "uk", (), COLLEGE_SPORTS),
    ("louisville", "cardinals", "lou", (), COLLEGE_SPORTS),
    ("lsu", "tigers", "lsu", (), COLLEGE_SPORTS),
    ("miami", "hurricanes", "mia", (), COLLEGE_SPORTS),
    ("michigan", "wolverines", "mich", (), COLLEGE_SPORTS),
    ("michigan state", "spartans", "msu", (), COLLEGE_SPORTS),
    ("north carolina", "tar heels", "unc", (), COLLEGE_SPORTS),
    ("notre dame", "fighting irish", "nd", ("irish",), COLLEGE_SPORTS),
    ("ohio state", "buckeyes", "osu", (), COLLEGE_SPORTS),
    ("oklahoma", "sooners", "okla", (), COLLEGE_SPORTS),
    ("oregon", "ducks", "ore", (), COLLEGE_SPORTS),
    ("penn state", "nittany lions", "psu", (), COLLEGE_SPORTS),
    ("purdue", "boilermakers", "pur", (), COLLEGE_SPORTS),
    ("san diego state", "aztecs", "sdsu", (), COLLEGE_SPORTS),
    ("tennessee", "volunteers", "tenn", ("vols",), COLLEGE_SPORTS),
    ("texas", "longhorns", "tex", (), COLLEGE_SPORTS),
    ("texas a&m", "aggies", "tamu", (), COLLEGE_SPORTS),
    ("uconn", "huskies", "conn", (), COLLEGE_SPORTS),
    ("ucla", "bruins", "ucla", (), COLLEGE_SPORTS),
    ("usc", "trojans", "usc", ("trojan",), COLLEGE_SPORTS),
    ("villanova", "wildcats", "vill", ("nova",), ("cbb",)),
    ("washington", "huskies", "wash", (), COLLEGE_SPORTS),
    ("washington state", "cougars", "wsu", (), COLLEGE_SPORTS),
    ("west virginia", "mountaineers", "wvu", (), COLLEGE_SPORTS),
    ("wisconsin", "badgers", "wis", (), COLLEGE_SPORTS),
]


def _college_teams() -> List[Team]:
    teams = []
    for school, nickname, abbrev, aliases, sports in COLLEGE_PROGRAMS:
        for sport in sports:
            teams.append(Team(
                sport=sport,
                key=school.replace(" ", "-").replace("&", ""),
                name=f"{school.title()} {nickname.title()}",
                city=school,
                nicknames=(nickname,) + tuple(aliases),
                abbrev=abbrev,
            ))
    return teams


# Registration order doubles as franchise priority: pro before college
ALL_TEAMS: List[Team] = NFL_TEAMS + NBA_TEAMS + NHL_TEAMS + _college_teams()

TEAMS_BY_ID: Dict[str, Team] = {team.id: team for team in ALL_TEAMS}

# Cities whose most common franchise is not the first registered one
CITY_DEFAULTS: Dict[str, str] = {
    "minnesota": "nba:timberwolves",
    "los angeles": "nfl:rams",
    "new york": "nfl:giants",
}


def _build_index(pairs: Iterable[Tuple[str, Team]]) -> Dict[str, List[Team]]:
    index: Dict[str, List[Team]] = {}
    for alias, team in pairs:
        bucket = index.setdefault(alias, [])
        if team not in bucket:
            bucket.append(team)
    return index


NICKNAME_INDEX: Dict[str, List[Team]] = _build_index(
    (nickname, team) for team in ALL_TEAMS for nickname in team.nicknames
)
CITY_INDEX: Dict[str, List[Team]] = _build_index(
    (city, team) for team in ALL_TEAMS for city in team.cities
)
ABBREV_INDEX: Dict[str, List[Team]] = _build_index(
    (team.abbrev.upper(), team) for team in ALL_TEAMS if team.sport in PRO_SPORTS
)


def get_team(team_id: str) -> Optional[Team]:
    return TEAMS_BY_ID.get(team_id)


def sport_of(team_id: str) -> str:
    return team_id.split(":", 1)[0]


def detect_sport(text: str) -> Optional[str]:
    """Sport implied by league vocabulary in the text, if any."""
    for sport, pattern in SPORT_KEYWORDS:
        if pattern.search(text):
            return sport
    return None


def city_form(alias: str) -> str:
    """Canonical city form of a team nickname (first registered franchise)."""
    teams = NICKNAME_INDEX.get(alias.lower())
    if not teams:
        return alias
    return teams[0].city


def default_team(alias: str, candidates: Sequence[Team]) -> Team:
    """Most common franchise behind an alias."""
    preferred = CITY_DEFAULTS.get(alias.lower())
    if preferred:
        for team in candidates:
            if team.id == preferred:
                return team
    return candidates[0]


def disambiguate(
    alias: str,
    known_teams: Sequence[str] = (),
    sport_hint: Optional[str] = None,
    candidates: Optional[Sequence[Team]] = None,
    fallback_sports: Sequence[str] = (),
) -> Optional[str]:
    """
    Resolve an ambiguous alias (city, school, nickname or abbreviation) to one team.

    Args:
        alias: The alias as it appears in text
        known_teams: Canonical ids already extracted from the same text
        sport_hint: Sport given explicitly by the caller
        candidates: Teams the alias may denote (looked up when omitted)
        fallback_sports: Sports tried after the context ones (league keywords,
            the sport every alias in the text shares)

    Returns:
        Canonical team id, or None if the alias is unknown
    """
    if candidates is None:
        key = alias.lower()
        candidates = (
            NICKNAME_INDEX.get(key)
            or CITY_INDEX.get(key)
            or ABBREV_INDEX.get(alias.upper())
            or []
        )
    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0].id

    # An explicit sport wins, then the sport of teams already in context
    sports_in_context = [sport_hint] if sport_hint else []
    sports_in_context += [sport_of(team_id) for team_id in known_teams]
    sports_in_context += [sport for sport in fallback_sports if sport]

    for sport in sports_in_context:
        in_sport = [team for team in candidates if team.sport == sport]
        if in_sport:
            return default_team(alias, in_sport).id

    return default_team(alias, candidates).id
