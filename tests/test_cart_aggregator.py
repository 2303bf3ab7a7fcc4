"""
Tests for CartAggregator: joined cart views, totals and counts.
"""
from datetime import datetime, timezone

import pytest

from app.core.errors import NoSelectionError


class TestListWithDetails:
    def test_empty_cart(self, session, aggregator, user):
        assert aggregator.list_with_details(session, user.id) == []

    def test_newest_first(self, session, aggregator, user, make_product, make_line):
        first = make_line(user, make_product(name="First"))
        second = make_line(user, make_product(name="Second"))
        third = make_line(user, make_product(name="Third"))

        items = aggregator.list_with_details(session, user.id)

        assert [i.id for i in items] == [third.id, second.id, first.id]

    def test_product_details_joined(self, session, aggregator, user, make_product, make_line):
        product = make_product(name="Mug", points_required=40)
        make_line(user, product, quantity=3)

        [item] = aggregator.list_with_details(session, user.id)

        assert item.product.id == product.id
        assert item.product.name == "Mug"
        assert item.product.category_name == "Office"
        assert item.product.images == ["/uploads/products/item.webp"]
        assert item.line_points == 120

    def test_unavailable_products_excluded(self, session, aggregator, user, make_product, make_line):
        visible = make_line(user, make_product(name="Visible"))
        make_line(user, make_product(name="Inactive", active=False))
        make_line(user, make_product(name="Deleted", deleted=True))

        items = aggregator.list_with_details(session, user.id)

        assert [i.id for i in items] == [visible.id]

    def test_other_users_lines_excluded(self, session, aggregator, user, other_user, make_product, make_line):
        make_line(other_user, make_product())

        assert aggregator.list_with_details(session, user.id) == []


class TestSummary:
    def test_empty_cart_is_all_zeros(self, session, aggregator, user):
        summary = aggregator.summary(session, user.id)

        assert summary.selected_count == 0
        assert summary.total_points == 0
        assert summary.total_quantity == 0

    def test_only_selected_active_lines_count(self, session, aggregator, user, make_product, make_line):
        """
        A (100 pts x2, selected), B (30 pts x1, not selected),
        C (50 pts x4, selected, product inactive) => 1 line, 200 pts, qty 2.
        """
        make_line(user, make_product(name="A", points_required=100), quantity=2)
        make_line(user, make_product(name="B", points_required=30), quantity=1, is_selected=False)
        make_line(user, make_product(name="C", points_required=50, active=False), quantity=4)

        summary = aggregator.summary(session, user.id)

        assert summary.selected_count == 1
        assert summary.total_points == 200
        assert summary.total_quantity == 2

    def test_reflects_current_pricing(self, session, aggregator, user, make_product, make_line):
        product = make_product(points_required=100)
        make_line(user, product, quantity=2)

        product.points_required = 150
        session.add(product)
        session.commit()

        assert aggregator.summary(session, user.id).total_points == 300

    def test_summary_matches_listed_selection(self, session, aggregator, user, make_product, make_line):
        make_line(user, make_product(name="A", points_required=10), quantity=3)
        make_line(user, make_product(name="B", points_required=7), quantity=5)
        make_line(user, make_product(name="C", points_required=99), quantity=1, is_selected=False)

        items = aggregator.list_with_details(session, user.id)
        summary = aggregator.summary(session, user.id)

        selected = [i for i in items if i.is_selected]
        assert summary.selected_count == len(selected)
        assert summary.total_points == sum(i.line_points for i in selected)
        assert summary.total_quantity == sum(i.quantity for i in selected)


class TestCartCounts:
    def test_counts(self, session, aggregator, user, make_product, make_line):
        make_line(user, make_product(name="A"))
        make_line(user, make_product(name="B"), is_selected=False)
        make_line(user, make_product(name="C", active=False))
        make_line(user, make_product(name="D", deleted=True), is_selected=False)

        counts = aggregator.cart_counts(session, user.id)

        assert counts.total_count == 2
        assert counts.selected_count == 1
        assert counts.unavailable_count == 2

    def test_unavailable_counted_in_the_database(
        self, session, aggregator, user, other_user, make_product, make_line, monkeypatch
    ):
        make_line(user, make_product(name="A", active=False))
        make_line(user, make_product(name="B", deleted=True))
        make_line(other_user, make_product(name="C", active=False))

        def no_row_loading(*args, **kwargs):
            raise AssertionError("cart_counts must not load orphaned rows")

        monkeypatch.setattr(aggregator.cart_repo, "list_orphaned", no_row_loading)

        counts = aggregator.cart_counts(session, user.id)

        assert counts.unavailable_count == 2
        assert aggregator.cart_repo.count_orphaned(session, other_user.id) == 1

    def test_empty(self, session, aggregator, user):
        counts = aggregator.cart_counts(session, user.id)

        assert (counts.total_count, counts.selected_count, counts.unavailable_count) == (0, 0, 0)


class TestSelectedForCheckout:
    def test_returns_selected_lines_and_total(self, session, aggregator, user, make_product, make_line):
        a = make_line(user, make_product(name="A", points_required=100), quantity=2)
        make_line(user, make_product(name="B", points_required=30), is_selected=False)
        c = make_line(user, make_product(name="C", points_required=5), quantity=4)

        selection = aggregator.selected_for_checkout(session, user.id)

        assert {i.id for i in selection.items} == {a.id, c.id}
        assert selection.total_points == 220

    def test_nothing_selected_raises(self, session, aggregator, user, make_product, make_line):
        make_line(user, make_product(), is_selected=False)

        with pytest.raises(NoSelectionError):
            aggregator.selected_for_checkout(session, user.id)

    def test_deselecting_last_line_blocks_checkout(
        self, session, store, aggregator, user, make_product, make_line
    ):
        """
        Starting from A (selected), B (not selected) and C (selected but
        inactive), deselecting A leaves nothing to check out.
        """
        a = make_line(user, make_product(name="A", points_required=100), quantity=2)
        make_line(user, make_product(name="B", points_required=30), is_selected=False)
        make_line(user, make_product(name="C", points_required=50, active=False), quantity=4)

        selection = aggregator.selected_for_checkout(session, user.id)
        assert [i.id for i in selection.items] == [a.id]
        assert selection.total_points == 200

        store.update_selection(session, user.id, a.id, False)

        assert aggregator.summary(session, user.id).selected_count == 0
        with pytest.raises(NoSelectionError):
            aggregator.selected_for_checkout(session, user.id)

    def test_only_unavailable_selected_raises(self, session, aggregator, user, make_product, make_line):
        make_line(user, make_product(active=False))

        with pytest.raises(NoSelectionError):
            aggregator.selected_for_checkout(session, user.id)

    def test_partition_with_unselected(self, session, aggregator, user, make_product, make_line):
        """Selected and unselected active lines together make up the cart."""
        make_line(user, make_product(name="A"))
        make_line(user, make_product(name="B"), is_selected=False)
        make_line(user, make_product(name="C"))

        all_ids = {i.id for i in aggregator.list_with_details(session, user.id)}
        selected_ids = {i.id for i in aggregator.selected_for_checkout(session, user.id).items}
        unselected_ids = {
            i.id for i in aggregator.list_with_details(session, user.id) if not i.is_selected
        }

        assert selected_ids | unselected_ids == all_ids
        assert selected_ids & unselected_ids == set()


class TestUnavailableLines:
    def test_reasons(self, session, aggregator, user, make_product, make_line):
        inactive = make_line(user, make_product(name="Old", active=False))
        deleted = make_line(user, make_product(name="Gone", deleted=True))
        make_line(user, make_product(name="Fine"))

        orphans = {o.id: o for o in aggregator.unavailable_lines(session, user.id)}

        assert set(orphans) == {inactive.id, deleted.id}
        assert orphans[inactive.id].reason == "inactive"
        assert orphans[deleted.id].reason == "deleted"

    def test_deactivated_after_adding(self, session, aggregator, user, make_product, make_line):
        product = make_product()
        line = make_line(user, product, quantity=2)
        product.deleted_at = datetime.now(timezone.utc)
        session.add(product)
        session.commit()

        [orphan] = aggregator.unavailable_lines(session, user.id)

        assert orphan.id == line.id
        assert orphan.quantity == 2
        assert orphan.reason == "deleted"
        assert aggregator.list_with_details(session, user.id) == []
