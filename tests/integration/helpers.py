"""
Invariant checks shared by integration tests
"""

from taxonomy_api.services.hierarchy import get_descendant_ids


async def assert_totals_consistent(category_repo):
    """Every total equals own counts summed over the category and its current descendants"""
    categories = await category_repo.list_all()
    by_id = {category.id: category for category in categories}

    for category in categories:
        subtree = [category] + [by_id[node_id] for node_id in get_descendant_ids(category, categories)]
        products = sum(node.product_count for node in subtree)
        auctions = sum(node.auction_count for node in subtree)

        assert category.total_product_count == products, category.id
        assert category.total_auction_count == auctions, category.id
        assert category.total_item_count == products + auctions, category.id


async def assert_hierarchy_consistent(category_service):
    """No structural problems anywhere in the tree"""
    assert await category_service.validate_tree() == {}
