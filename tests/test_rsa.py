import pytest

from bilbo.core.material import PublicKeyMaterial
from bilbo.errors import (
    ConfigError,
    DecodeError,
    EngineSpentError,
    FactorizationFailed,
    InvalidKeyMaterial,
)
from bilbo.modules.rsa import (
    DEFAULT_MAX_ITERATIONS,
    WEAK_ROUNDS,
    PickLock,
    PickLockConfig,
    derive_private,
)
from mock_keys import (
    create_balanced_small_key,
    create_close_prime_key,
    create_far_prime_key,
    primes_with_fermat_gap,
    public_pem,
)


def assert_consistent(key, n, e):
    assert key.prime_p * key.prime_q == n
    assert key.modulus == n
    assert key.public_exponent == e
    phi = (key.prime_p - 1) * (key.prime_q - 1)
    assert key.private_exponent * e % phi == 1


# Weak strategy

def test_weak_recovers_3127():
    pl = PickLock(PublicKeyMaterial(3127, 3))
    key = pl.try_lock_pick_weak_private()
    assert (key.prime_p, key.prime_q) == (53, 59)
    assert_consistent(key, 3127, 3)
    assert key.private_exponent == 2011


def test_weak_recovers_close_primes_1024():
    p, q, e = create_close_prime_key(1024)
    pl = PickLock.from_pem(public_pem(p * q, e))
    key = pl.try_lock_pick_weak_private()
    assert {key.prime_p, key.prime_q} == {p, q}
    assert_consistent(key, p * q, e)


def test_weak_converges_on_last_round():
    p, q = primes_with_fermat_gap(WEAK_ROUNDS - 1)
    pl = PickLock(PublicKeyMaterial(p * q, 65537))
    assert sorted(pl.factor_weak()) == [p, q]


def test_weak_fails_one_round_past_cap():
    p, q = primes_with_fermat_gap(WEAK_ROUNDS)
    pl = PickLock(PublicKeyMaterial(p * q, 65537))
    with pytest.raises(FactorizationFailed):
        pl.factor_weak()


def test_weak_ignores_iteration_bound():
    pl = PickLock(PublicKeyMaterial(3127, 3))
    pl.set_iteration_bound(1)
    assert sorted(pl.factor_weak()) == [53, 59]


def test_weak_fails_on_far_primes():
    p, q, e = create_far_prime_key(512)
    pl = PickLock(PublicKeyMaterial(p * q, e))
    with pytest.raises(FactorizationFailed):
        pl.try_lock_pick_weak_private()


def test_weak_perfect_square_modulus():
    pl = PickLock(PublicKeyMaterial(101 * 101, 3))
    assert pl.factor_weak() == (101, 101)


def test_weak_perfect_square_modulus_is_not_exported():
    pl = PickLock(PublicKeyMaterial(101 * 101, 3))
    with pytest.raises(InvalidKeyMaterial, match="perfect square"):
        pl.try_lock_pick_weak_private()


# Strong strategy

def test_strong_recovers_balanced_small_key():
    p, q, e = create_balanced_small_key(8)
    pl = PickLock(PublicKeyMaterial(p * q, e), PickLockConfig(seed=1))
    pl.set_iteration_bound(20000)
    key = pl.try_lock_pick_strong_private()
    assert {key.prime_p, key.prime_q} == {p, q}
    assert_consistent(key, p * q, e)


def test_strong_zero_bound_rejected_before_search(capsys):
    p, q, e = create_balanced_small_key(8)
    pl = PickLock(PublicKeyMaterial(p * q, e))
    with pytest.raises(ConfigError):
        pl.set_iteration_bound(0)
    assert capsys.readouterr().out == ""
    assert pl.config.max_iterations == DEFAULT_MAX_ITERATIONS


def test_negative_bound_rejected():
    pl = PickLock(PublicKeyMaterial(3127, 3))
    with pytest.raises(ConfigError):
        pl.set_iteration_bound(-5)


def test_zero_bound_in_config_rejected():
    with pytest.raises(ConfigError):
        PickLock(PublicKeyMaterial(3127, 3), PickLockConfig(max_iterations=0))


def test_strong_never_reports_a_non_divisor():
    odd_primes = [3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47, 53, 59, 61, 67, 71]
    for i, p in enumerate(odd_primes):
        for q in odd_primes[i:]:
            n = p * q
            if n < 15:
                continue
            pl = PickLock(PublicKeyMaterial(n, 3 if n % 3 else 5), PickLockConfig(seed=n, max_iterations=200))
            try:
                a, b = pl.factor_strong()
            except FactorizationFailed:
                continue
            assert a * b == n
            assert 1 < a < n and 1 < b < n


def test_strong_fails_outside_bit_band():
    # 3 * 65537: the small factor is far below half the modulus width
    pl = PickLock(PublicKeyMaterial(3 * 65537, 5), PickLockConfig(seed=7, max_iterations=500))
    with pytest.raises(FactorizationFailed):
        pl.try_lock_pick_strong_private()


def test_strong_reports_progress(capsys):
    pl = PickLock(PublicKeyMaterial(3 * 65537, 5),
                  PickLockConfig(seed=3, max_iterations=30, progress_interval=10))
    with pytest.raises(FactorizationFailed):
        pl.factor_strong(verbose=True)
    out = capsys.readouterr().out
    assert "[*] Checked 10 candidates" in out
    assert "[*] Checked 30 candidates" in out
    assert "candidates of 8-10 bits..." in out


def test_strong_quiet_without_verbose(capsys):
    pl = PickLock(PublicKeyMaterial(3 * 65537, 5),
                  PickLockConfig(seed=3, max_iterations=30, progress_interval=10))
    with pytest.raises(FactorizationFailed):
        pl.factor_strong()
    assert capsys.readouterr().out == ""


def test_strong_is_reproducible_with_seed():
    p, q, e = create_balanced_small_key(10)
    runs = []
    for _ in range(2):
        pl = PickLock(PublicKeyMaterial(p * q, e),
                      PickLockConfig(seed=42, max_iterations=100000, progress_interval=1))
        runs.append(pl.factor_strong())
    assert runs[0] == runs[1]


# Construction and lifecycle

@pytest.mark.parametrize("n, e", [
    (3128, 3),       # even
    (65537, 3),      # prime
    (9, 5),          # too small
    (3127, 1),       # exponent too small
    (3127, 3127),    # exponent not below n
    (3127, 4),       # even exponent
])
def test_rejects_bad_material(n, e):
    with pytest.raises(InvalidKeyMaterial):
        PickLock(PublicKeyMaterial(n, e))


def test_from_pem_rejects_garbage():
    with pytest.raises(DecodeError):
        PickLock.from_pem("-----BEGIN PUBLIC KEY-----\nnope\n-----END PUBLIC KEY-----\n")


def test_engine_is_single_use():
    pl = PickLock(PublicKeyMaterial(3127, 3))
    pl.factor_weak()
    with pytest.raises(EngineSpentError):
        pl.factor_weak()
    with pytest.raises(EngineSpentError):
        pl.factor_strong()
    with pytest.raises(EngineSpentError):
        pl.set_iteration_bound(10)


def test_failed_attempt_also_spends_engine():
    pl = PickLock(PublicKeyMaterial(3 * 65537, 5), PickLockConfig(max_iterations=5))
    with pytest.raises(FactorizationFailed):
        pl.factor_strong()
    with pytest.raises(EngineSpentError):
        pl.factor_weak()


def test_config_is_owned_by_engine():
    config = PickLockConfig(max_iterations=50)
    pl = PickLock(PublicKeyMaterial(3127, 3), config)
    pl.set_iteration_bound(7)
    assert config.max_iterations == 50
    assert pl.config.max_iterations == 7


# Derivation

def test_derive_rejects_non_invertible_exponent():
    # phi(3127) = 3016 = 2^3 * 13 * 29
    with pytest.raises(InvalidKeyMaterial):
        derive_private(PublicKeyMaterial(3127, 13), 53, 59)


def test_weak_attack_surfaces_inconsistent_exponent():
    pl = PickLock(PublicKeyMaterial(3127, 29))
    with pytest.raises(InvalidKeyMaterial):
        pl.try_lock_pick_weak_private()


def test_derive_rejects_wrong_factors():
    with pytest.raises(InvalidKeyMaterial):
        derive_private(PublicKeyMaterial(3127, 3), 53, 61)


def test_derive_orders_factors_and_crt():
    key = derive_private(PublicKeyMaterial(3127, 3), 59, 53)
    assert (key.prime_p, key.prime_q) == (53, 59)
    assert key.exponent_p == key.private_exponent % 52
    assert key.exponent_q == key.private_exponent % 58
    assert key.coefficient * key.prime_q % key.prime_p == 1
    assert key.public() == PublicKeyMaterial(3127, 3)
