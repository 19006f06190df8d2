import random

from livescribe.router import StreamRouter

from fakes import RecordingSink, make_frame


def _router():
    discard = RecordingSink()
    router = StreamRouter(discard=discard)
    return router, discard


def test_starts_muted_and_discards():
    router, discard = _router()
    recognizer = RecordingSink()
    router.set_recognizer_session(recognizer)

    router.route(make_frame(0))

    assert router.muted
    assert discard.sequences == [0]
    assert recognizer.sequences == []


def test_unmuted_without_session_discards():
    router, discard = _router()
    router.set_muted(False)
    router.route(make_frame(0))
    assert discard.sequences == [0]


def test_every_frame_reaches_exactly_one_destination():
    rng = random.Random(7)
    router, discard = _router()
    recognizer = RecordingSink()
    router.set_recognizer_session(recognizer)
    expected_live, expected_muted = [], []

    for seq in range(500):
        if rng.random() < 0.3:
            router.toggle_mute()
        router.route(make_frame(seq))
        (expected_muted if router.muted else expected_live).append(seq)

    assert recognizer.sequences == expected_live
    assert discard.sequences == expected_muted
    assert router.delivered_to_recognizer == len(expected_live)
    assert router.delivered_to_discard == len(expected_muted)


def test_replacing_session_unbinds_stale_one():
    router, discard = _router()
    old, new = RecordingSink(), RecordingSink()
    router.set_recognizer_session(old)
    router.set_muted(False)
    router.route(make_frame(0))

    router.set_recognizer_session(new)
    router.route(make_frame(1))
    router.route(make_frame(2))

    assert old.sequences == [0]
    assert new.sequences == [1, 2]
    assert discard.sequences == []


def test_unbind_all_mutes_and_drops_session():
    router, discard = _router()
    recognizer = RecordingSink()
    router.set_recognizer_session(recognizer)
    router.set_muted(False)

    router.unbind_all()
    router.route(make_frame(0))

    assert router.muted
    assert router.session is None
    assert discard.sequences == [0]
    assert recognizer.sequences == []
