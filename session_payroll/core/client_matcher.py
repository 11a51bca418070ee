"""
Client Matching Engine

Matches free-text calendar event titles against the client roster.

Strategies, in priority order (first hit wins per client):
1. EXACT:  special keyword (e.g. "supervision") - short-circuits everything
2. EXACT:  full name (first 2 words, ignoring extras like "Μετρητά", "Online"),
           including one-word names such as "Νίκος"
3. Single-word names stop here: the other strategies need first + last
4. HIGH:   reversed name ("Doe John" for "John Doe")
5. HIGH:   hyphen-separated alternate names ("John - Γιάννης")
6. LOW:    first name only, as a whole word (min 4 chars)

MEDIUM and LOW need a human to confirm them. A surname alone never matches.

All comparisons are case-insensitive and accent-insensitive.
"""
from typing import Iterable, List, Sequence

from session_payroll.config import MATCH_MAX_WORDS, MIN_FIRST_NAME_LENGTH
from session_payroll.core.models import ClientMatchResult, MatchConfidence
from session_payroll.core.text_normalizer import normalize, normalize_for_matching

REASON_KEYWORD = 'Special keyword (supervision)'
REASON_FULL_NAME = 'Full name (first + last)'
REASON_REVERSED = 'Reversed order (last + first)'
REASON_ALTERNATE = 'Alternate name (hyphenated)'
REASON_FIRST_NAME = 'First name only (needs confirmation)'


def _contains_word(text: str, word: str) -> bool:
    """Whole-word containment on normalized, single-spaced text"""
    return f" {word} " in f" {text} "


class ClientMatcher:
    """
    Finds client candidates for event titles.

    Holds no per-call state, so one instance can serve many calculations.
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def find_client_matches_with_confidence(self,
                                            title: str,
                                            client_names: Sequence[str],
                                            special_keywords: Iterable[str] = ()) -> List[ClientMatchResult]:
        """
        Find all client matches for an event title with confidence levels

        Args:
            title: Event title to match
            client_names: Client names in roster order
            special_keywords: Keywords that override client matching

        Returns:
            Match results in roster order (a single EXACT result when a
            special keyword is found). Empty list when nothing matches.
        """
        title_normalized = normalize(title)
        if not title_normalized:
            return []

        if self.verbose:
            print(f"🔍 MATCHING: '{title}' → normalized: '{title_normalized}'")

        # Strategy 1: Special keywords
        for keyword in special_keywords:
            keyword_normalized = normalize(keyword)
            if keyword_normalized and keyword_normalized in title_normalized:
                return [ClientMatchResult(
                    client_name=keyword,
                    confidence=MatchConfidence.EXACT,
                    matched_text=keyword_normalized,
                    reason=REASON_KEYWORD,
                    is_special_keyword=True,
                )]

        matches = []
        for client_name in client_names:
            result = self._match_client(title_normalized, client_name)
            if result:
                matches.append(result)

        if self.verbose:
            for match in matches:
                print(f"   • {match.client_name} [{match.confidence.name}] {match.reason}")

        return matches

    def _match_client(self, title_normalized: str, client_name: str):
        client_normalized = normalize_for_matching(client_name, MATCH_MAX_WORDS)
        if not client_normalized:
            return None

        # Strategy 2: Full name
        if client_normalized in title_normalized:
            return ClientMatchResult(client_name, MatchConfidence.EXACT,
                                     client_normalized, REASON_FULL_NAME)

        name_parts = client_normalized.split(' ')

        # Strategy 3: Single name - nothing else to try
        if len(name_parts) == 1:
            return None

        first_name = name_parts[0]
        surname = name_parts[-1]

        # Strategy 4: Reversed name
        reversed_name = f"{surname} {first_name}"
        if reversed_name in title_normalized:
            return ClientMatchResult(client_name, MatchConfidence.HIGH,
                                     reversed_name, REASON_REVERSED)

        # Strategy 5: Hyphen-separated alternate names
        if '-' in client_name:
            for part in client_name.split('-'):
                part_normalized = normalize_for_matching(part, MATCH_MAX_WORDS)
                if part_normalized and part_normalized in title_normalized:
                    return ClientMatchResult(client_name, MatchConfidence.HIGH,
                                             part_normalized, REASON_ALTERNATE)

        # Strategy 6: First name only, whole word
        if len(first_name) >= MIN_FIRST_NAME_LENGTH and _contains_word(title_normalized, first_name):
            return ClientMatchResult(client_name, MatchConfidence.LOW,
                                     first_name, REASON_FIRST_NAME)

        return None

    def find_client_matches(self,
                            title: str,
                            client_names: Sequence[str],
                            special_keywords: Iterable[str] = ()) -> List[str]:
        """
        Names of auto-acceptable (EXACT/HIGH) matches, de-duplicated, roster order
        """
        names = []
        for result in self.find_client_matches_with_confidence(title, client_names, special_keywords):
            if result.confidence.auto_accepted and result.client_name not in names:
                names.append(result.client_name)
        return names

    def get_uncertain_matches(self,
                              title: str,
                              client_names: Sequence[str],
                              special_keywords: Iterable[str] = ()) -> List[ClientMatchResult]:
        """MEDIUM/LOW matches that need user confirmation"""
        return [
            result
            for result in self.find_client_matches_with_confidence(title, client_names, special_keywords)
            if self.requires_confirmation(result)
        ]

    @staticmethod
    def requires_confirmation(match_result: ClientMatchResult) -> bool:
        return match_result.confidence.requires_confirmation
