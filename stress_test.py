"""
Stress tests / adversarial evaluation of stagefuzz.

This script attempts to BREAK the claimed properties over many seeded
refresh cycles:
  1. Identifier uniqueness at both levels after every plan
  2. Staged replay lands on the target (every stage checked by the view)
  3. Driver state == planned target == what the view shows
  4. One stage outstanding at a time with a deferred view
  5. Arbitrary (non-planner) pairs replay correctly

A failing pair is dumped as JSON so it can be replayed with from_json.
"""

import sys, os, random, time
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from stagefuzz.config import PlannerConfig
from stagefuzz.changeset import diff
from stagefuzz.driver import Driver
from stagefuzz.errors import StagefuzzError
from stagefuzz.formats import to_json
from stagefuzz.models import Collection, Element, Section, ensure_unique
from stagefuzz.planner import MutationPlanner
from stagefuzz.view import DeferredView, ListView


def test(name, condition, detail=""):
    status = "PASS" if condition else "FAIL"
    print(f"  [{status}] {name}" + (f"  ({detail})" if detail else ""))
    return condition


def dump(label, source, target):
    print(f"    {label} source: {to_json(source)}")
    print(f"    {label} target: {to_json(target)}")


# ═══════════════════════════════════════════════════════════════
#  §1  PLANNER INVARIANTS
# ═══════════════════════════════════════════════════════════════

print("=" * 70)
print("  §1  PLANNER INVARIANTS — 200 seeds × 30 cycles")
print("=" * 70)

violations = 0
sizes = []
for seed in range(200):
    planner = MutationPlanner(PlannerConfig(seed=seed))
    state = Collection()
    for _ in range(30):
        state = planner.plan(state)
        try:
            ensure_unique(state)
        except StagefuzzError as exc:
            violations += 1
            if violations <= 3:
                print(f"    seed {seed}: {exc}")
        sizes.append(len(state))

test("Unique identifiers after every plan", violations == 0, f"{violations} violations")
test("Collections never empty out", min(sizes) > 0, f"min={min(sizes)} max={max(sizes)}")


# ═══════════════════════════════════════════════════════════════
#  §2  STAGED REPLAY OF PLANNED PAIRS
# ═══════════════════════════════════════════════════════════════

print()
print("=" * 70)
print("  §2  STAGED REPLAY — planned pairs")
print("=" * 70)

failures = 0
stage_counts = []
t0 = time.perf_counter()
for seed in range(200):
    planner = MutationPlanner(PlannerConfig(seed=seed))
    source = planner.plan(Collection())
    for _ in range(20):
        target = planner.plan(source)
        stages = diff(source, target)
        stage_counts.append(len(stages))
        view = ListView(source)
        try:
            for stage in stages:
                view.apply(stage)
            ok = view.snapshot() == target
        except StagefuzzError as exc:
            ok = False
            print(f"    seed {seed}: {exc}")
        if not ok:
            failures += 1
            if failures <= 2:
                dump(f"seed {seed}", source, target)
        source = target
dt = time.perf_counter() - t0

test("Replay lands on target (4000 pairs)", failures == 0, f"{failures} failures")
print(f"  stages per script: min={min(stage_counts)} max={max(stage_counts)}  "
      f"({dt*1000:.0f}ms total)")


# ═══════════════════════════════════════════════════════════════
#  §3  DRIVER ROUND TRIP
# ═══════════════════════════════════════════════════════════════

print()
print("=" * 70)
print("  §3  DRIVER ROUND TRIP — synchronous and deferred views")
print("=" * 70)

sync_mismatches = 0
for seed in range(100):
    view = ListView()
    driver = Driver(view, config=PlannerConfig(seed=seed))
    for _ in range(20):
        driver.refresh()
        if view.snapshot() != driver.state:
            sync_mismatches += 1

test("ListView shows driver state after each refresh",
     sync_mismatches == 0, f"{sync_mismatches} mismatches")

overlap = 0
deferred_mismatches = 0
for seed in range(100):
    view = DeferredView()
    driver = Driver(view, config=PlannerConfig(seed=seed))
    for _ in range(20):
        driver.refresh()
        planned = driver.pending
        while view.pending:
            if view.pending > 1:
                overlap += 1
            view.advance()
        if planned is not None and driver.state is not planned:
            deferred_mismatches += 1
        if view.snapshot() != driver.state:
            deferred_mismatches += 1

test("Never more than one stage outstanding", overlap == 0, f"{overlap} overlaps")
test("Deferred commit swaps to exactly the planned target",
     deferred_mismatches == 0, f"{deferred_mismatches} mismatches")


# ═══════════════════════════════════════════════════════════════
#  §4  ARBITRARY PAIRS
# ═══════════════════════════════════════════════════════════════

print()
print("=" * 70)
print("  §4  ARBITRARY PAIRS — not shaped by the planner")
print("=" * 70)

def random_collection(rng):
    """Generate a random valid collection."""
    ids = rng.sample(range(30), rng.randint(0, 15))
    return Collection(tuple(
        Section(
            Element(sid, rng.random() < 0.3),
            tuple(Element(eid, rng.random() < 0.3)
                  for eid in rng.sample(range(25), rng.randint(0, 12))),
        )
        for sid in ids
    ))

random.seed(42)
arbitrary_failures = 0
for _ in range(2000):
    a = random_collection(random)
    b = random_collection(random)
    view = ListView(a)
    try:
        for stage in diff(a, b):
            view.apply(stage)
        ok = view.snapshot() == b
    except StagefuzzError:
        ok = False
    if not ok:
        arbitrary_failures += 1
        if arbitrary_failures <= 2:
            dump("arbitrary", a, b)

test("Replay lands on target (2000 arbitrary pairs)",
     arbitrary_failures == 0, f"{arbitrary_failures} failures")


# ═══════════════════════════════════════════════════════════════
#  SUMMARY
# ═══════════════════════════════════════════════════════════════

print()
print("=" * 70)
print("  STRESS TEST SUMMARY")
print("=" * 70)
print("  If you see FAIL above, there's a bug.")
print("  If everything is PASS, the planner and the staged script agree")
print("  for the tested seeds (not a proof, but high confidence).")
