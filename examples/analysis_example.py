"""
Example usage of the corridor analysis engine
"""

from corridor.analysis import CorridorAnalyzer
from corridor.dataset import load_corridor
from corridor.population import mitigation_actions
from corridor.ranking import top
from corridor.recommendations import upgrade_plan
from corridor.stores import InMemoryHistoryStore, InMemoryStationDirectory
from corridor.weights import BUILTIN_PRESETS, adjust_weight

dataset = load_corridor("data")
analyzer = CorridorAnalyzer(InMemoryStationDirectory(dataset.stations), history=InMemoryHistoryStore())

# Example 1: Station upgrade priorities with the default weights
print("Example 1: Top 5 station upgrade priorities")
print("="*60)
run = analyzer.run_stations(dataset.stations)
for entry in top(run.ranked, 5):
    station = dataset.station(entry.entity.station_id)
    plan = upgrade_plan(station, entry.entity)
    print(f"  {entry.rank:2d}. {station.name:22s} {entry.score:3d} ({entry.band}) -> {plan['estimated_cost']}")
print(f"  Corridor vulnerability index: {run.aggregate.vulnerability_index}")

# Example 2: Shift the weights towards population impact
print("\n\nExample 2: Population-focused weights")
print("="*60)
config = adjust_weight(BUILTIN_PRESETS["balanced"], "population", 0.6)
print(f"  Weights: {config.to_dict()}")
run = analyzer.run_stations(dataset.stations, config)
for entry in top(run.ranked, 3):
    print(f"  {entry.rank}. {dataset.station(entry.entity.station_id).name} {entry.score}")

# Example 3: Most fragile connections
print("\n\nExample 3: Connection fragility")
print("="*60)
run = analyzer.run_connections(dataset.connections)
names = dataset.station_names()
for entry in top(run.ranked, 5):
    c = entry.entity
    print(f"  {names[c.from_station]} -> {names[c.to_station]}: impact {c.impact_score}, "
          f"buffer {c.buffer_minutes:.0f} min ({c.train_type})")

# Example 4: Population risk zones
print("\n\nExample 4: Risk zones")
print("="*60)
run = analyzer.run_zones(dataset.zones)
for entry in run.ranked:
    print(f"  {entry.entity.name:28s} {entry.score:3d} {entry.entity.risk_level}")
for action in mitigation_actions(run.results):
    print(f"  [{action['urgency']}] {action['action']}: {', '.join(action['target_zones'])}")
