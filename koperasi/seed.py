#!/usr/bin/env python3
"""Demo data for the meeting governance core

Loads three representative meetings:
- 1: annual members' meeting, scheduled, two agenda items up for a vote
- 2: quarterly evaluation, completed with final tallies
- 3: monthly coordination, ongoing with a vote in progress

Run with: python -m koperasi.seed
"""

from datetime import datetime, timezone

from .meetings import AgendaItem, Meeting, MeetingStatus, VoteResults, VoteState


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _item(index, title, description, results=None):
    requires_vote = results is not None
    if not requires_vote:
        state = VoteState.NOT_APPLICABLE
    elif results.voters:
        state = VoteState.RECORDED
    else:
        state = VoteState.PENDING
    return AgendaItem(
        id=f"agenda-{index}",
        title=title,
        description=description,
        requires_vote=requires_vote,
        vote_state=state,
        vote_results=results
    )


def demo_meetings():
    """Build the demo meetings (not yet stored)"""
    return [
        Meeting(
            id="1",
            created_at=_utc(2024, 11, 1, 8, 0),
            updated_at=_utc(2024, 11, 1, 8, 0),
            title="Rapat Anggota Tahunan 2024",
            date=_utc(2024, 12, 15, 10, 0),
            location="Aula Koperasi",
            status=MeetingStatus.SCHEDULED,
            attendees=[],
            agenda_items=[
                _item(1, "Laporan Keuangan Tahun 2024",
                      "Presentasi laporan keuangan dan pembahasan"),
                _item(2, "Persetujuan Anggaran 2025",
                      "Voting untuk menyetujui anggaran tahun depan", VoteResults()),
                _item(3, "Pemilihan Pengurus Baru",
                      "Voting untuk memilih pengurus periode 2025-2027", VoteResults()),
            ]
        ),
        Meeting(
            id="2",
            created_at=_utc(2024, 10, 1, 8, 0),
            updated_at=_utc(2024, 10, 20, 16, 0),
            title="Rapat Evaluasi Triwulan III",
            date=_utc(2024, 10, 20, 14, 0),
            location="Ruang Rapat Koperasi",
            status=MeetingStatus.COMPLETED,
            attendees=["1", "2", "3", "4", "5"],
            agenda_items=[
                _item(1, "Review Kinerja Q3", "Evaluasi pencapaian target triwulan III"),
                _item(2, "Persetujuan Program Pelatihan",
                      "Voting untuk program pelatihan anggota",
                      VoteResults(approve=4, reject=0, abstain=1, voters=["1", "2", "3", "4", "5"])),
            ]
        ),
        Meeting(
            id="3",
            created_at=_utc(2024, 11, 15, 8, 0),
            updated_at=_utc(2024, 11, 25, 9, 0),
            title="Rapat Koordinasi Bulanan",
            date=_utc(2024, 11, 25, 9, 0),
            location="Ruang Rapat Koperasi",
            status=MeetingStatus.ONGOING,
            attendees=["1", "2", "3"],
            agenda_items=[
                _item(1, "Update Progress Proyek", "Laporan kemajuan proyek bulan ini"),
                _item(2, "Persetujuan Kerjasama Baru",
                      "Voting untuk kerjasama dengan mitra baru",
                      VoteResults(approve=2, reject=0, abstain=1, voters=["1", "2", "3"])),
            ]
        ),
    ]


def seed_demo_meetings(system) -> int:
    """Insert the demo meetings that are not already present"""
    inserted = 0
    for meeting in demo_meetings():
        if system.meeting_store.get(meeting.id) is None:
            system.meeting_store.insert(meeting)
            inserted += 1
    return inserted


def main():
    from .system import CooperativeSystem

    print("Koperasi Governance - Demo Data")
    print("=" * 40)
    system = CooperativeSystem()
    inserted = seed_demo_meetings(system)
    print(f"Seeded {inserted} meetings")
    for meeting in system.queries.list_meetings():
        print(f"  [{meeting.id}] {meeting.date:%Y-%m-%d %H:%M} {meeting.status.value:<9} {meeting.title}")


if __name__ == "__main__":
    main()
