import json
import logging
import sys

from skilltree.errors import Result
from skilltree.graph_builder import GraphBuilder
from skilltree.layered_layout import LayeredLayout
from skilltree.models import HORIZONTAL
from skilltree.store import InMemoryTrickStore

# === File paths ===
categories_csv = "data/categories.csv"
tricks_csv = "data/tricks.csv"
completions_csv = "data/completions.csv"
nodes_out = "data/nodes_{slug}.json"
links_out = "data/links_{slug}.json"

logger = logging.getLogger("export_skill_tree_json")


# === Build and lay out one category ===
def export_category(store: InMemoryTrickStore, slug: str, user_id: str, orientation: str) -> Result:
    category = next((c for c in store.list_categories() if c.slug == slug), None)
    builder = GraphBuilder(store.list_categories())
    tricks = store.list_tricks(category.id) if category else []
    result = builder.build(
        tricks,
        set(store.list_completed_trick_ids(user_id)),
        category.id if category else slug,
    )
    if not result.ok:
        return result

    graph = LayeredLayout().layout(result.value, orientation)
    payload = graph.to_dict()

    with open(nodes_out.format(slug=slug), "w") as f:
        json.dump(payload["nodes"], f, indent=2)
    with open(links_out.format(slug=slug), "w") as f:
        json.dump(payload["links"], f, indent=2)

    logger.info(
        "Wrote %d nodes and %d links for %s", len(payload["nodes"]), len(payload["links"]), slug
    )
    for warning in result.warnings:
        logger.info("  skipped: %s", warning.message)
    return result


# === Run export ===
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    orientation = sys.argv[1] if len(sys.argv) > 1 else HORIZONTAL
    user_id = sys.argv[2] if len(sys.argv) > 2 else "demo-user"

    store = InMemoryTrickStore.from_csv(categories_csv, tricks_csv, completions_csv)
    failed = False
    for category in store.list_categories():
        outcome = export_category(store, category.slug, user_id, orientation)
        if not outcome.ok:
            logger.error("%s: %s", category.slug, outcome.error)
            failed = True
    sys.exit(1 if failed else 0)
