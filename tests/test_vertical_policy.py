import logging
import os
import sys

import numpy as np

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import config
import logutil
from biomes import BiomeId
from biome_policy import BiomeAllowlistPolicy
from policy_config import ConfigStore
from vertical_policy import VerticalBoundsPolicy, WorldBounds


def _policy(**raw):
    values = {"enabled": True, "whitelistedBiomes": ["plains"]}
    values.update(raw)
    store = ConfigStore(values)
    return store, VerticalBoundsPolicy(store)


def test_sea_level_override_only_when_active():
    _, policy = _policy(seaLevel=100)
    assert policy.effective_sea_level() == 100
    _, policy = _policy(seaLevel=100, whitelistedBiomes=[])
    assert policy.effective_sea_level() == config.HOST_SEA_LEVEL
    _, policy = _policy(seaLevel=100, enabled=False)
    assert policy.effective_sea_level() == config.HOST_SEA_LEVEL


def test_floor_rounds_down():
    for raw, expected in ((-100, -112), (-112, -112), (-1, -16), (0, 0), (17, 16), (300, 288)):
        _, policy = _policy(bedrockLevel=raw)
        floor = policy.effective_floor()
        assert floor == expected
        assert floor <= raw
        assert floor % 16 == 0


def test_floor_defers_to_host():
    _, policy = _policy()
    assert policy.effective_floor() == config.HOST_MIN_Y
    _, policy = _policy(bedrockLevel=-100, enabled=False)
    assert policy.effective_floor() == config.HOST_MIN_Y
    store = ConfigStore({"whitelistedBiomes": ["plains"], "bedrockLevel": -100})
    assert VerticalBoundsPolicy(store, min_y=-32).effective_floor() == -112
    store = ConfigStore({"whitelistedBiomes": []})
    assert VerticalBoundsPolicy(store, min_y=-32).effective_floor() == -32


def test_ceiling_height_is_a_span():
    _, policy = _policy(bedrockLevel=-100, maxHeight=1000)
    floor = policy.effective_floor()
    assert policy.effective_ceiling_height(floor) == 1120
    assert floor + policy.effective_ceiling_height(floor) == 1008
    assert policy.effective_ceiling_height(0) == 1008


def test_ceiling_height_without_ceiling_uses_host_top():
    _, policy = _policy(bedrockLevel=-100)
    assert policy.effective_ceiling_height(-112) == 320 + 112
    _, policy = _policy()
    assert policy.effective_ceiling_height(config.HOST_MIN_Y) == config.HOST_HEIGHT


def test_degenerate_height_is_refused(caplog):
    caplog.set_level(logging.ERROR)
    logutil.reset_once()
    _, policy = _policy(maxHeight=100)
    assert policy.effective_ceiling_height(112) == config.HOST_HEIGHT
    assert policy.effective_ceiling_height(500) == config.HOST_HEIGHT
    assert "not above floor" in caplog.text


def test_world_bounds():
    _, policy = _policy(seaLevel=90, bedrockLevel=-100, maxHeight=1000)
    assert policy.world_bounds() == WorldBounds(-112, 1120, 90)
    _, policy = _policy(enabled=False)
    assert policy.world_bounds() == WorldBounds(config.HOST_MIN_Y, config.HOST_HEIGHT, config.HOST_SEA_LEVEL)


def test_backfill_gate():
    _, policy = _policy(bedrockLevel=-100)
    assert policy.should_backfill_floor(True)
    assert not policy.should_backfill_floor(False)
    _, policy = _policy()
    assert not policy.should_backfill_floor(True)
    _, policy = _policy(bedrockLevel=-100, enabled=False)
    assert not policy.should_backfill_floor(True)


def test_override_to_fluid():
    _, policy = _policy(seaLevel=100)
    assert policy.override_to_fluid(50, -1)
    assert policy.override_to_fluid(50, 0)
    assert policy.override_to_fluid(99, -0.001)
    assert not policy.override_to_fluid(100, -1)
    assert not policy.override_to_fluid(150, -1)
    assert not policy.override_to_fluid(50, 5)
    _, policy = _policy(seaLevel=100, enabled=False)
    assert not policy.override_to_fluid(50, -1)


def test_fluid_mask_matches_scalar_decision():
    _, policy = _policy(seaLevel=20)
    ys = np.arange(0, 40)[None, :, None]
    rng = np.random.default_rng(3)
    density = rng.uniform(-2, 2, size=(4, 40, 4))
    mask = policy.fluid_mask(ys, density)
    assert mask.shape == density.shape
    for x in range(4):
        for y in range(40):
            for z in range(4):
                assert mask[x, y, z] == policy.override_to_fluid(y, density[x, y, z])
    _, inactive = _policy(seaLevel=20, whitelistedBiomes=[])
    assert not inactive.fluid_mask(ys, density).any()


def test_backfill_floor_writes_full_layer():
    _, policy = _policy(bedrockLevel=-100)
    blocks = np.zeros((16, 64, 16), dtype="u2")
    row = policy.backfill_floor(blocks, 9, array_min_y=-128)
    assert row == 16
    assert (blocks[:, 16, :] == 9).all()
    assert np.count_nonzero(blocks) == 16 * 16
    assert policy.backfill_floor(blocks, 9, array_min_y=0) is None
    assert policy.backfill_floor(blocks, 9, array_min_y=-500) is None


def test_end_to_end_scenario():
    store = ConfigStore({
        "enabled": True,
        "whitelistedBiomes": ["plains"],
        "seaLevel": 100,
        "bedrockLevel": -100,
        "maxHeight": 1000,
    })
    bounds = VerticalBoundsPolicy(store)
    biomes = BiomeAllowlistPolicy(store)
    catalog = [(BiomeId.parse(n), "handle:" + n) for n in ("desert", "plains", "ocean")]
    assert bounds.effective_floor() == -112
    assert bounds.effective_ceiling_height(-112) == 1120
    assert not biomes.is_allowed(BiomeId.parse("desert"))
    assert biomes.resolve_fallback(BiomeId.parse("desert"), catalog) == "handle:plains"
    assert bounds.override_to_fluid(10, -0.5)


def test_pinned_snapshot_outlives_reload():
    store, policy = _policy(seaLevel=100, bedrockLevel=-100, maxHeight=1000)
    pinned = store.current
    store.reload({"enabled": True, "whitelistedBiomes": ["plains"], "seaLevel": 20})
    assert policy.world_bounds(pinned) == WorldBounds(-112, 1120, 100)
    assert policy.world_bounds() == WorldBounds(config.HOST_MIN_Y, config.HOST_HEIGHT, 20)
    assert policy.override_to_fluid(50, -1, pinned)
    assert not policy.override_to_fluid(50, -1)
    assert policy.should_backfill_floor(True, pinned)
    assert not policy.should_backfill_floor(True)
    blocks = np.zeros((16, 64, 16), dtype="u2")
    assert policy.backfill_floor(blocks, 9, array_min_y=-128, snapshot=pinned) == 16
