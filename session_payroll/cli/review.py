#!/usr/bin/env python3
"""
Match review CLI

Interactive tool to confirm or reject uncertain client matches and to add
clients for unmatched events. Decisions are stored per employee and used by
every later calculation; the payroll is recalculated at the end.
"""
import argparse
import sys
from typing import Dict, List

from session_payroll.cli.calculate import add_common_arguments, calculate, open_session, print_report
from session_payroll.core.client_quick_add import ClientAdded, ClientQuickAdd, suggest_client_name
from session_payroll.core.match_review import ConfirmationError, MatchReviewer
from session_payroll.core.models import CalendarEvent, UncertainMatch
from session_payroll.core.text_normalizer import normalize


def group_by_title(matches: List[UncertainMatch]) -> List[UncertainMatch]:
    """One uncertain match per normalized title (a decision covers them all)"""
    seen: Dict[str, UncertainMatch] = {}
    for match in matches:
        seen.setdefault(normalize(match.event_title), match)
    return list(seen.values())


def display_match(match: UncertainMatch, index: int, total: int):
    """Display uncertain match details"""
    print("\n" + "=" * 80)
    print(f"Uncertain match {index}/{total}")
    print("=" * 80)

    print(f"Event:        {match.event_title}")
    suggestion = match.suggested_match
    print(f"Suggested:    {suggestion.client_name} [{suggestion.confidence.name}]")
    print(f"Reason:       {suggestion.reason}")

    if len(match.possible_matches) > 1:
        print("\n📋 Candidates:")
        for i, candidate in enumerate(match.possible_matches, 1):
            print(f"   {i}. {candidate.client_name} [{candidate.confidence.name}]")


def choose_candidate(match: UncertainMatch):
    """Pick among several candidates; returns the client name or None to skip"""
    if len(match.possible_matches) == 1:
        return match.suggested_match.client_name

    while True:
        user_input = input(f"\nWhich client? (1-{len(match.possible_matches)}, 's' to skip): ").strip().lower()
        if user_input == 's':
            return None
        try:
            choice = int(user_input)
            if 1 <= choice <= len(match.possible_matches):
                return match.possible_matches[choice - 1].client_name
            print(f"❌ Please enter a number between 1 and {len(match.possible_matches)}")
        except ValueError:
            print(f"❌ Invalid input. Please enter a number.")


def review_uncertain(reviewer: MatchReviewer, matches: List[UncertainMatch], employee_id: str) -> Dict[str, int]:
    """Walk through uncertain matches; returns counts per action"""
    counts = {'confirmed': 0, 'rejected': 0, 'skipped': 0}

    for i, match in enumerate(matches, 1):
        display_match(match, i, len(matches))

        print("\n⚙️  Options:")
        print("   1. Confirm")
        print("   2. Reject (not a client session)")
        print("   3. Skip to next")
        print("   4. Quit")

        action = input("\nChoose action (1-4): ").strip().lower()

        if action in ('4', 'q'):
            break

        if action in ('3', 's'):
            counts['skipped'] += 1
            continue

        if action == '1':
            client_name = choose_candidate(match)
            if client_name is None:
                counts['skipped'] += 1
                continue
            result = reviewer.confirm_match(match, employee_id, client_name)
        elif action == '2':
            result = reviewer.reject_match(match, employee_id)
        else:
            print("❌ Invalid choice, skipping...")
            counts['skipped'] += 1
            continue

        if isinstance(result, ConfirmationError):
            print(f"   ❌ {result.message}")
            counts['skipped'] += 1
        elif action == '1':
            print(f"   ✅ '{match.event_title}' → {result.client_name}")
            counts['confirmed'] += 1
        else:
            print(f"   🚫 '{match.event_title}' will stay unmatched")
            counts['rejected'] += 1

    return counts


def review_unmatched(quick_add: ClientQuickAdd, events: List[CalendarEvent], employee_id: str) -> int:
    """Offer to add a client for each distinct unmatched title; returns clients added"""
    titles: Dict[str, CalendarEvent] = {}
    for event in events:
        titles.setdefault(normalize(event.title), event)

    added = 0
    for i, event in enumerate(titles.values(), 1):
        print("\n" + "-" * 80)
        print(f"Unmatched {i}/{len(titles)}: {event.title}")

        action = input("Add as new client? (y/n/q): ").strip().lower()
        if action == 'q':
            break
        if action != 'y':
            continue

        suggested = suggest_client_name(event.title)
        name = input(f"   Client name [{suggested}]: ").strip() or suggested
        price = input("   Price (Enter for default): ").strip() or None
        employee_price = input("   Employee share (Enter for default): ").strip() or None
        company_price = input("   Company share (Enter for default): ").strip() or None

        result = quick_add.add_client(name, employee_id, price, employee_price, company_price)
        if isinstance(result, ClientAdded):
            added += 1
        else:
            for error in result.errors:
                print(f"   ❌ {error}")

    return added


def main():
    """Main review function"""
    parser = argparse.ArgumentParser(description='Review uncertain and unmatched calendar events')
    add_common_arguments(parser)
    parser.add_argument('--skip-unmatched', action='store_true', help='Do not offer quick-add for unmatched events')
    args = parser.parse_args()

    print("=" * 80)
    print("📝 MATCH REVIEW")
    print("=" * 80)

    session = open_session(args)
    try:
        employee_id = session.employee.id
        reviewer = MatchReviewer(session.confirmation_store)

        report = calculate(session)
        pending = group_by_title(reviewer.filter_uncertain_matches(report.uncertain_matches, employee_id))

        counts = {'confirmed': 0, 'rejected': 0, 'skipped': 0}
        if pending:
            print(f"\n🔍 Found {len(pending)} uncertain titles")
            counts = review_uncertain(reviewer, pending, employee_id)
        else:
            print("\n🎉 No uncertain matches to review!")

        added = 0
        if report.unmatched_events and not args.skip_unmatched:
            print(f"\n⚠️  {len(report.unmatched_events)} unmatched events")
            added = review_unmatched(ClientQuickAdd(session.roster_store), report.unmatched_events, employee_id)
            if added:
                session.clients = session.roster_store.get_clients(employee_id)

        # Summary
        print("\n" + "=" * 80)
        print("📊 REVIEW SUMMARY")
        print("=" * 80)
        print(f"✅ Confirmed: {counts['confirmed']}")
        print(f"🚫 Rejected: {counts['rejected']}")
        print(f"⏭️  Skipped: {counts['skipped']}")
        print(f"👤 Clients added: {added}")

        # Recalculate with the new decisions
        print("\n🔄 Recalculating...")
        print_report(calculate(session))

    except Exception as e:
        print(f"\n❌ Error: {e}")
        sys.exit(1)
    finally:
        session.close()


if __name__ == "__main__":
    main()
