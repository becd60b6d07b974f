"""
Tests for the message buffer swap rules.
"""

from ticker.buffer import MessageBuffer
from ticker.messages import MessageSequence, PlainMessage


def seq(*texts):
    return MessageSequence.flat(PlainMessage(t) for t in texts)


def buffer_showing(*texts):
    buffer = MessageBuffer()
    buffer.replace(seq(*texts))
    return buffer


class TestCommitIfDue:
    """Test when a pending sequence replaces the current one."""

    def test_no_swap_mid_pass(self):
        buffer = buffer_showing('old')
        buffer.set_pending(seq('new'))

        for _ in range(5):
            assert buffer.commit_if_due(wrapped=False, interrupt_mode=False) is False

        assert buffer.current.texts() == ['old']
        assert buffer.has_pending

    def test_swap_on_wrap_exactly_once(self):
        buffer = buffer_showing('old')
        buffer.set_pending(seq('new'))

        assert buffer.commit_if_due(wrapped=True, interrupt_mode=False) is True
        assert buffer.current.texts() == ['new']
        assert buffer.pending is None

        # Nothing pending any more
        assert buffer.commit_if_due(wrapped=True, interrupt_mode=False) is False
        assert buffer.current.texts() == ['new']
        assert buffer.stats['swaps'] == 1

    def test_interrupt_mode_swaps_mid_pass(self):
        buffer = buffer_showing('old')
        buffer.set_pending(seq('new'))
        assert buffer.commit_if_due(wrapped=False, interrupt_mode=True) is True
        assert buffer.current.texts() == ['new']

    def test_empty_current_swaps_immediately(self):
        buffer = MessageBuffer()
        buffer.set_pending(seq('first'))
        assert buffer.commit_if_due(wrapped=False, interrupt_mode=False) is True
        assert buffer.current.texts() == ['first']

    def test_empty_sequence_counts_as_empty(self):
        buffer = MessageBuffer()
        buffer.replace(MessageSequence.flat([]))
        buffer.set_pending(seq('first'))
        assert buffer.commit_if_due(wrapped=False, interrupt_mode=False) is True

    def test_nothing_pending_is_noop(self):
        buffer = buffer_showing('old')
        assert buffer.commit_if_due(wrapped=True, interrupt_mode=True) is False
        assert buffer.current.texts() == ['old']


class TestPending:
    """Test queuing and clearing."""

    def test_set_pending_leaves_current_alone(self):
        buffer = buffer_showing('old')
        buffer.set_pending(seq('new'))
        assert buffer.current.texts() == ['old']

    def test_newer_pending_replaces_older(self):
        buffer = buffer_showing('old')
        buffer.set_pending(seq('v1'))
        buffer.set_pending(seq('v2'))
        buffer.commit_if_due(wrapped=True, interrupt_mode=False)
        assert buffer.current.texts() == ['v2']
        assert buffer.stats['pending_replaced'] == 1

    def test_clear(self):
        buffer = buffer_showing('old')
        buffer.set_pending(seq('new'))
        buffer.clear()
        assert buffer.current is None
        assert buffer.pending is None
        assert buffer.is_empty

    def test_status(self):
        buffer = buffer_showing('a', 'b')
        buffer.set_pending(seq('c'))
        status = buffer.get_status()
        assert status['current_count'] == 2
        assert status['has_pending'] is True
