"""
Tests for the mutation translator: created/deleted/changed nodes to bulk operations.
"""

import pytest

from graphsync.indexing.errors import TranslationError
from graphsync.indexing.inclusion import InclusionFilter
from graphsync.indexing.operations import Delete, DocumentKey, PendingBatch, Upsert
from graphsync.indexing.spec import IndexSpecTable
from graphsync.indexing.transaction import NodeChange, TransactionData, node
from graphsync.indexing.translator import MutationTranslator, project_document

PEOPLE = "people:Person(first_name,last_name)"


def translator_for(spec_text, **kwargs):
    return MutationTranslator(IndexSpecTable.load(spec_text), **kwargs)


class TestProjection:
    def test_document_carries_id_labels_and_present_properties(self):
        state = node(42, ["Person", "Admin"], first_name="Ada", age=36)

        document = project_document(state, ("first_name", "last_name"))

        assert document == {
            "id": "42",
            "labels": ["Person", "Admin"],
            "first_name": "Ada",
        }

    def test_values_are_passed_through_untouched(self):
        tags = ["math", "engines"]
        state = node(1, ["Person"], tags=tags, score=1.5, active=False)

        document = project_document(state, ("tags", "score", "active"))

        assert document["tags"] is tags
        assert document["score"] == 1.5
        assert document["active"] is False

    def test_null_valued_property_is_omitted(self):
        state = node(1, ["Person"], first_name="Ada", nickname=None)

        document = project_document(state, ("first_name", "nickname"))

        assert "nickname" not in document
        assert document["first_name"] == "Ada"

    def test_null_property_never_reaches_the_batch(self):
        translator = translator_for(PEOPLE)

        batch = translator.translate(
            created_nodes=[node(7, ["Person"], first_name="Ada", last_name=None)]
        )

        body = batch.get(DocumentKey("people", "7")).body
        assert "last_name" not in body
        assert body["first_name"] == "Ada"


class TestUpsertValue:
    def test_body_is_a_read_only_copy(self):
        body = {"id": "1", "first_name": "Ada"}
        upsert = Upsert(DocumentKey("people", "1"), "Person", body)

        body["first_name"] = "Grace"

        assert upsert.body["first_name"] == "Ada"
        with pytest.raises(TypeError):
            upsert.body["first_name"] = "Grace"

    def test_equal_operations_hash_alike(self):
        first = Upsert(DocumentKey("people", "1"), "Person", {"id": "1"})
        second = Upsert(DocumentKey("people", "1"), "Person", {"id": "1"})

        assert first == second
        assert len({first, second}) == 1
        assert first.action_lines()[1] == {"id": "1"}


class TestTranslate:
    def test_created_node_scenario(self):
        translator = translator_for(PEOPLE)

        batch = translator.translate(created_nodes=[node(7, ["Person"], first_name="Ada")])

        assert batch.operations() == [
            Upsert(
                key=DocumentKey("people", "7"),
                doc_type="Person",
                body={"id": "7", "labels": ["Person"], "first_name": "Ada"},
            )
        ]

    def test_deleted_node_uses_labels_at_deletion(self):
        translator = translator_for(PEOPLE + ";cities:City(name)")

        batch = translator.translate(deleted_nodes=[node(9, ["Person", "City"])])

        assert set(batch.keys()) == {
            DocumentKey("people", "9"),
            DocumentKey("cities", "9"),
        }
        assert all(isinstance(op, Delete) for op in batch)
        assert batch.get(DocumentKey("cities", "9")).doc_type == "City"

    def test_changed_node_uses_current_state(self):
        translator = translator_for(PEOPLE)
        change = NodeChange(
            node(3, ["Person"], first_name="Ada"),
            node(3, ["Person"], first_name="Augusta", last_name="King"),
        )

        batch = translator.translate(changed_nodes=[change])

        (upsert,) = batch.operations()
        assert upsert.body == {
            "id": "3",
            "labels": ["Person"],
            "first_name": "Augusta",
            "last_name": "King",
        }

    def test_fan_out_to_every_spec_of_a_label(self):
        translator = translator_for("people:Person(first_name);emails:Person(email)")
        state = node(5, ["Person"], first_name="Ada", email="ada@example.org")

        batch = translator.translate(created_nodes=[state])

        assert batch.get(DocumentKey("people", "5")).body == {
            "id": "5",
            "labels": ["Person"],
            "first_name": "Ada",
        }
        assert batch.get(DocumentKey("emails", "5")).body == {
            "id": "5",
            "labels": ["Person"],
            "email": "ada@example.org",
        }

    def test_unindexed_labels_produce_nothing(self):
        translator = translator_for(PEOPLE)
        batch = translator.translate(created_nodes=[node(1, ["Robot"], first_name="R2")])
        assert batch.is_empty()

    def test_later_steps_override_earlier_ones_for_the_same_key(self):
        translator = translator_for(PEOPLE)
        state = node(11, ["Person"], first_name="Ada")

        # created then deleted: the delete wins
        batch = translator.translate(created_nodes=[state], deleted_nodes=[state])
        assert batch.operations() == [Delete(DocumentKey("people", "11"), "Person")]

        # deleted then changed: the upsert wins
        batch = translator.translate(
            deleted_nodes=[state], changed_nodes=[NodeChange(state, state)]
        )
        (operation,) = batch.operations()
        assert isinstance(operation, Upsert)

    def test_one_operation_per_document_key(self):
        translator = translator_for(PEOPLE)
        first = node(12, ["Person"], first_name="Ada")
        final = node(12, ["Person"], first_name="Ada", last_name="Lovelace")

        batch = translator.translate(
            created_nodes=[first], changed_nodes=[NodeChange(first, final)]
        )

        assert len(batch) == 1
        assert batch.get(DocumentKey("people", "12")).body["last_name"] == "Lovelace"

    def test_collapsed_updates_match_single_net_change(self):
        translator = translator_for(PEOPLE)
        original = node(13, ["Person"], first_name="Ada")
        final = node(13, ["Person"], first_name="Augusta", last_name="King")

        two_steps = translator.translate(changed_nodes=[NodeChange(original, final)])
        one_step = translator.translate(
            changed_nodes=[NodeChange(node(13, ["Person"]), final)]
        )

        assert two_steps == one_step

    def test_each_call_starts_with_a_fresh_batch(self):
        translator = translator_for(PEOPLE)
        first = translator.translate(created_nodes=[node(1, ["Person"])])
        second = translator.translate(created_nodes=[node(2, ["Person"])])

        assert list(first.keys()) == [DocumentKey("people", "1")]
        assert list(second.keys()) == [DocumentKey("people", "2")]

    def test_change_without_current_state_is_a_contract_violation(self):
        translator = translator_for(PEOPLE)
        with pytest.raises(TranslationError):
            translator.translate(changed_nodes=[NodeChange(node(1, ["Person"]), None)])


class TestLabelRemoval:
    def test_removing_only_indexed_label_deletes_document(self):
        table = IndexSpecTable.load(PEOPLE)
        translator = MutationTranslator(table)
        change = NodeChange(
            node(21, ["Person", "Other"], first_name="Ada"),
            node(21, ["Other"], first_name="Ada"),
        )

        filtered = InclusionFilter(table).filter(TransactionData(changed_nodes=[change]))
        batch = translator.translate_transaction(filtered)

        assert batch.operations() == [Delete(DocumentKey("people", "21"), "Person")]

    def test_removing_untracked_label_reindexes(self):
        table = IndexSpecTable.load(PEOPLE)
        change = NodeChange(
            node(22, ["Person", "Other"], first_name="Ada"),
            node(22, ["Person"], first_name="Ada"),
        )

        filtered = InclusionFilter(table).filter(TransactionData(changed_nodes=[change]))
        batch = MutationTranslator(table).translate_transaction(filtered)

        (operation,) = batch.operations()
        assert isinstance(operation, Upsert)
        assert operation.body["labels"] == ["Person"]

    def test_still_tracked_elsewhere_keeps_old_document_by_default(self):
        translator = translator_for(PEOPLE + ";cities:City(name)")
        change = NodeChange(
            node(23, ["Person", "City"], first_name="Ada", name="Rome"),
            node(23, ["City"], first_name="Ada", name="Rome"),
        )

        batch = translator.translate(changed_nodes=[change])

        assert list(batch.keys()) == [DocumentKey("cities", "23")]

    def test_prune_stale_documents_deletes_from_dropped_index(self):
        translator = translator_for(
            PEOPLE + ";cities:City(name)", prune_stale_documents=True
        )
        change = NodeChange(
            node(24, ["Person", "City"], first_name="Ada", name="Rome"),
            node(24, ["City"], first_name="Ada", name="Rome"),
        )

        batch = translator.translate(changed_nodes=[change])

        assert batch.get(DocumentKey("people", "24")) == Delete(
            DocumentKey("people", "24"), "Person"
        )
        assert isinstance(batch.get(DocumentKey("cities", "24")), Upsert)

    def test_prune_keeps_index_still_reached_through_another_label(self):
        translator = translator_for(
            "people:Person(name);people:Employee(name)", prune_stale_documents=True
        )
        change = NodeChange(
            node(25, ["Person", "Employee"], name="Ada"),
            node(25, ["Employee"], name="Ada"),
        )

        batch = translator.translate(changed_nodes=[change])

        (operation,) = batch.operations()
        assert isinstance(operation, Upsert)
        assert operation.doc_type == "Employee"


def test_pending_batch_equality_ignores_insertion_order():
    a, b = PendingBatch(), PendingBatch()
    first = Delete(DocumentKey("people", "1"), "Person")
    second = Delete(DocumentKey("people", "2"), "Person")
    a.put(first)
    a.put(second)
    b.put(second)
    b.put(first)
    assert a == b
