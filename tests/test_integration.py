"""Integration tests for complete transaction workflows."""

import io
import logging

import pytest

import main
from rewindable.block_runner import TransactionBlock, run_block
from rewindable.config import TransactionConfig
from rewindable.diagnostics import logging_sink, stream_sink
from rewindable.group import TransactionGroup
from rewindable.models.transaction import BlockOutcome
from rewindable.transaction_manager import TransactionManager
from rewindable.transactional import Transactional


class Child:
    parent = None


class BrokenParent(Transactional):
    def __init__(self):
        self.children = []

    def add(self, child):
        child.parent = self
        self.children.append(child)


class FixedParent(BrokenParent):
    def _post_transaction_rewind(self):
        # Reconnect restored children to the live parent.
        for child in self.children:
            child.parent = self


class Account(Transactional):
    def __init__(self, owner, balance):
        self.owner = owner
        self.balance = balance


# Test fixtures
@pytest.fixture
def accounts():
    """Provide two bank accounts."""
    return Account("alice", 1000), Account("bob", 500)


class TestObjectGraphs:
    """Tests for self-referential object graphs."""

    def test_broken_graph_without_hook(self):
        """Test that back-references point at a restored copy without the hook."""
        parent = BrokenParent()
        parent.add(Child())
        assert parent.children[0].parent is parent

        parent.start_transaction()
        parent.add(Child())
        assert parent.children[1].parent is parent
        parent.abort_transaction()

        assert len(parent.children) == 1
        assert parent.children[0].parent is not parent
        assert isinstance(parent.children[0].parent, BrokenParent)

    def test_fixed_graph_after_abort(self):
        """Test that the post-restore hook repairs back-references."""
        parent = FixedParent()
        parent.add(Child())

        parent.start_transaction()
        parent.add(Child())
        parent.abort_transaction()

        assert len(parent.children) == 1
        assert parent.children[0].parent is parent

    def test_fixed_graph_after_rewind(self):
        """Test that the hook also runs on rewind."""
        parent = FixedParent()
        parent.add(Child())

        parent.start_transaction("edit")
        parent.add(Child())
        parent.start_transaction()
        parent.add(Child())
        parent.rewind_transaction("edit")

        assert len(parent.children) == 1
        assert parent.children[0].parent is parent
        assert parent.transaction_open("edit") is True


class TestBankingWorkflows:
    """Tests for realistic multi-object workflows."""

    def test_transfer_with_insufficient_funds_rolls_back(self, accounts):
        """Test that a failed transfer leaves both accounts unchanged."""
        alice, bob = accounts

        def transfer(source, destination, amount=1500):
            source.balance -= amount
            destination.balance += amount
            if source.balance < 0:
                return BlockOutcome.ABORT
            return BlockOutcome.COMMIT

        run_block(alice, bob, body=transfer, name="transfer")

        assert (alice.balance, bob.balance) == (1000, 500)
        assert not alice.transaction_open("transfer")

    def test_successful_transfer_commits(self, accounts):
        """Test that a valid transfer commits on both accounts."""
        alice, bob = accounts

        with TransactionBlock(alice, bob, name="transfer"):
            alice.balance -= 200
            bob.balance += 200

        assert (alice.balance, bob.balance) == (800, 700)

    def test_group_audit_rolled_back(self, accounts):
        """Test a grouped audit that is rewound and then aborted."""
        alice, bob = accounts

        with TransactionGroup(alice, bob) as group:
            group.start_transaction("audit")
            alice.balance = 0
            bob.balance = 0
            group.rewind_transaction("audit")
            assert (alice.balance, bob.balance) == (1000, 500)
            alice.balance = 1
            group.abort_transaction("audit")

        assert (alice.balance, bob.balance) == (1000, 500)


class TestDiagnostics:
    """Tests for the per-operation trace."""

    def test_trace_is_indented_by_level(self):
        """Test that trace lines carry one marker per open level."""
        lines = []
        manager = TransactionManager([], TransactionConfig(sink=lines.append))

        manager.is_open()
        manager.start("a")
        manager.start()
        manager.name()
        manager.rewind()
        manager.commit()
        manager.abort("a")

        assert lines == [
            "Transaction [closed]",
            "> Start Transaction('a')",
            ">> Start Transaction(None)",
            "|| Transaction Name(None)",
            "|| Rewind Transaction(None)",
            "<< Commit Transaction(None)",
            "< Abort Transaction('a')",
        ]

    def test_no_sink_by_default(self):
        """Test that the default configuration has no trace."""
        config = TransactionConfig.default()

        assert config.sink is None
        assert config.make_trace().enabled is False

    def test_debug_checkpoints(self):
        """Test that checkpoint reprs are traced when enabled."""
        lines = []
        manager = TransactionManager(
            [], TransactionConfig(sink=lines.append, debug_checkpoints=True)
        )

        manager.start("a")

        assert lines[0] == "> Start Transaction('a')"
        assert lines[1].startswith("| Checkpoint(level=1, name='a'")

    def test_stream_sink(self):
        """Test that the stream sink writes one line per operation."""
        stream = io.StringIO()
        manager = TransactionManager([], TransactionConfig(sink=stream_sink(stream)))

        manager.start()
        manager.commit()

        assert stream.getvalue() == (
            "> Start Transaction(None)\n< Commit Transaction(None)\n"
        )

    def test_logging_sink(self, caplog):
        """Test that the logging sink routes lines to a logger."""
        logger = logging.getLogger("rewindable.test")
        manager = TransactionManager(
            [], TransactionConfig(sink=logging_sink(logger, logging.INFO))
        )

        with caplog.at_level(logging.INFO, logger="rewindable.test"):
            manager.start("audit")

        assert "> Start Transaction('audit')" in caplog.text

    def test_invalid_sinks_rejected(self):
        """Test that sinks are validated at configuration time."""
        with pytest.raises(TypeError):
            TransactionConfig(sink="not callable")
        with pytest.raises(TypeError):
            stream_sink(object())


class TestDemo:
    """Tests for the demonstration entry point."""

    def test_main_runs_to_completion(self, capsys):
        """Test that the inventory walkthrough ends in the expected state."""
        main.main()

        output = capsys.readouterr().out
        assert "=== FINAL SYSTEM STATUS ===" in output
        assert "MILK-2PCT-1GAL: 35 on hand, 3 reserved" in output
        assert "MILK-2PCT-1GAL: 14 on hand, 0 reserved" in output
        assert "BREAD-WHITE-LOAF: 34 on hand, 2 reserved" in output
