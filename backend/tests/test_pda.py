from conftest import SOL_MINT, USDC_MINT, WHIRLPOOL_PROGRAM, WHIRLPOOLS_CONFIG
from orca_direct.pda import (
    get_start_tick_index,
    get_tick_array_address,
    get_tick_array_keys,
    get_tick_array_start_indices,
    get_whirlpool_address,
    min_start_tick_bound,
)


def test_start_indices_for_tick_zero_a_to_b():
    assert get_tick_array_start_indices(0, 64, True) == [0, -5632, -11264]


def test_start_indices_for_tick_zero_b_to_a():
    assert get_tick_array_start_indices(0, 64, False) == [0, 5632, 11264]


def test_negative_tick_floors_toward_negative_infinity():
    assert get_tick_array_start_indices(-1, 64, True) == [-5632, -11264, -16896]
    assert get_start_tick_index(-5632, 64, 0) == -5632
    assert get_start_tick_index(-5633, 64, 0) == -11264


def test_b_to_a_shift_moves_to_next_array_at_boundary():
    # tick one spacing below an array start is searched from that array
    assert get_tick_array_start_indices(5568, 64, True)[0] == 0
    assert get_tick_array_start_indices(5568, 64, False)[0] == 5632


def test_keys_are_deterministic_and_distinct(sol_usdc_pool_address):
    keys = get_tick_array_keys(0, 64, True, WHIRLPOOL_PROGRAM, sol_usdc_pool_address)
    again = get_tick_array_keys(0, 64, True, WHIRLPOOL_PROGRAM, sol_usdc_pool_address)

    assert keys == again
    assert len(keys) == 3
    assert len(set(keys)) == 3
    assert keys == [
        get_tick_array_address(WHIRLPOOL_PROGRAM, sol_usdc_pool_address, start)
        for start in (0, -5632, -11264)
    ]


def test_direction_changes_key_sequence(sol_usdc_pool_address):
    a_to_b = get_tick_array_keys(3000, 64, True, WHIRLPOOL_PROGRAM, sol_usdc_pool_address)
    b_to_a = get_tick_array_keys(3000, 64, False, WHIRLPOOL_PROGRAM, sol_usdc_pool_address)

    assert a_to_b != b_to_a
    assert a_to_b[1:] != b_to_a[1:]


def test_min_bound_uses_truncated_remainder():
    assert min_start_tick_bound(64) == -444928


def test_traversal_stops_near_min_tick(sol_usdc_pool_address):
    starts = get_tick_array_start_indices(-430000, 64, True)
    keys = get_tick_array_keys(-430000, 64, True, WHIRLPOOL_PROGRAM, sol_usdc_pool_address)

    assert starts == [-433664, -439296]
    assert keys == [
        get_tick_array_address(WHIRLPOOL_PROGRAM, sol_usdc_pool_address, start) for start in starts
    ]


def test_traversal_stops_near_max_tick():
    assert get_tick_array_start_indices(440000, 64, False) == [439296]
    assert get_start_tick_index(443636, 64, 0) == 439296
    assert get_start_tick_index(443636, 64, 1) is None


def test_current_tick_at_min_yields_no_arrays(sol_usdc_pool_address):
    assert get_tick_array_keys(-443636, 64, True, WHIRLPOOL_PROGRAM, sol_usdc_pool_address) == []


def test_tick_array_seed_uses_decimal_start_index(sol_usdc_pool_address):
    assert get_tick_array_address(WHIRLPOOL_PROGRAM, sol_usdc_pool_address, -5632) != get_tick_array_address(
        WHIRLPOOL_PROGRAM, sol_usdc_pool_address, 5632
    )


def test_whirlpool_address_depends_on_tick_spacing():
    tier_64 = get_whirlpool_address(WHIRLPOOL_PROGRAM, WHIRLPOOLS_CONFIG, SOL_MINT, USDC_MINT, 64)
    tier_8 = get_whirlpool_address(WHIRLPOOL_PROGRAM, WHIRLPOOLS_CONFIG, SOL_MINT, USDC_MINT, 8)

    assert tier_64 != tier_8
    assert tier_64 == get_whirlpool_address(WHIRLPOOL_PROGRAM, WHIRLPOOLS_CONFIG, SOL_MINT, USDC_MINT, 64)
