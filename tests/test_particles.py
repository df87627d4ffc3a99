import numpy as np
import pytest

from dtfeio.particles import (
    DIMENSIONS,
    ParticleData,
    ReadData,
    SamplePoint,
    compare_particles,
    particle_sort_key,
    same_particle,
)
from dtfeio.vector import PVector


def test_particle_defaults():
    p = ParticleData()
    assert p.weight == 1.0
    assert p.density == 0.0
    assert p.position == PVector.zero(DIMENSIONS)
    assert p.velocity == PVector.zero(DIMENSIONS)


def test_particle_position_from_sequence():
    p = ParticleData(position=[1.0, 2.0, 3.0])
    assert isinstance(p.position, PVector)
    assert p.position[2] == 3.0


def test_sample_point_stores_delta():
    s = SamplePoint(position=[0.5, 0.5, 0.5], delta=[0.1, 0.2, 0.3])
    assert s.delta == PVector([0.1, 0.2, 0.3])
    assert s.position == PVector([0.5, 0.5, 0.5])


def test_compare_particles_orders_by_x_first():
    a = ParticleData(position=[1.0, 9.0, 9.0])
    b = ParticleData(position=[2.0, 0.0, 0.0])
    assert compare_particles(a, b) is True
    assert compare_particles(b, a) is False


def test_compare_particles_breaks_ties_on_y_then_z():
    a = ParticleData(position=[1.0, 1.0, 5.0])
    b = ParticleData(position=[1.0, 2.0, 0.0])
    c = ParticleData(position=[1.0, 1.0, 6.0])
    assert compare_particles(a, b)
    assert compare_particles(a, c)
    assert not compare_particles(c, a)


def test_compare_equal_particles_is_false():
    a = ParticleData(position=[1.0, 1.0, 1.0])
    b = ParticleData(position=[1.0, 1.0, 1.0])
    assert compare_particles(a, b) is False
    assert same_particle(a, b)


def test_same_particle_different_positions():
    a = ParticleData(position=[1.0, 1.0, 1.0])
    b = ParticleData(position=[1.0, 1.0, 2.0])
    assert not same_particle(a, b)


def test_sorting_with_key_is_ordered():
    points = [
        ParticleData(position=p)
        for p in ([3.0, 0.0, 0.0], [1.0, 2.0, 0.0], [1.0, 1.0, 4.0], [1.0, 1.0, 2.0])
    ]
    ordered = sorted(points, key=particle_sort_key)
    assert all(
        not compare_particles(b, a) for a, b in zip(ordered, ordered[1:])
    )
    assert ordered[0].position == PVector([1.0, 1.0, 2.0])


def test_read_data_allocation_shapes():
    data = ReadData()
    pos = data.allocate_positions(5)
    w = data.allocate_weights(5)
    v = data.allocate_velocities(5)
    s = data.allocate_scalars(5)
    assert pos.shape == (5, DIMENSIONS)
    assert w.shape == (5,)
    assert v.shape == (5, DIMENSIONS)
    assert s.shape == (5, 1)
    assert data.number_of_particles() == 5


def test_read_data_returns_same_array():
    data = ReadData()
    pos = data.allocate_positions(2)
    pos[1, 0] = 4.0
    assert data.positions[1, 0] == 4.0
    assert data.positions is pos


def test_read_data_count_mismatch_raises():
    data = ReadData()
    data.allocate_positions(4)
    with pytest.raises(ValueError):
        data.allocate_weights(3)


def test_read_data_unallocated_access_raises():
    data = ReadData()
    with pytest.raises(LookupError):
        _ = data.velocities
    assert data.number_of_particles() == 0
    assert not data.has("velocities")


def test_read_data_sampling_independent_of_particles():
    data = ReadData()
    data.allocate_positions(4)
    sampling, delta = data.allocate_sampling(2)
    assert sampling.shape == (2, DIMENSIONS)
    assert delta.shape == (2, DIMENSIONS)
    assert data.number_of_particles() == 4
    assert data.has("delta")


def test_read_data_dtype():
    data = ReadData(dtype=np.float64)
    assert data.allocate_weights(1).dtype == np.float64


def test_read_data_negative_count_raises():
    with pytest.raises(ValueError):
        ReadData().allocate_positions(-1)