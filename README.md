# dtfeio

`dtfeio` reads particle data from cosmological N-body snapshots and writes
fields that have been sampled on grids. It provides:

- a reader for binary Gadget snapshots (format 1 and 2, either byte order,
  one file or several files);
- a reader for modified-gravity force files that sit next to a snapshot;
- readers for plain-text particle files, optionally with user-chosen
  sampling points;
- a writer and reader for binary field files that begin with a 1024-byte
  descriptive header;
- text writers for fields on regular grids and on redshift-cone grids.

## Installation

```
pip install .
```

The only run-time dependency is `numpy`.

## Options

Every reader and writer takes a `dtfeio.options.UserOptions` dataclass.
It works in 3 dimensions by default. Its fields include `box_coordinates`,
`user_given_box_coordinates`, `grid_size`, `region`, `region_on`,
`read_particle_data` (flags for the position, mass, velocity and extra
scalar blocks), `read_particle_species` (six flags, one per particle species),
`additional_options`, `input_filename` and `input_file_type`. Readers update
`box_coordinates` in place.

## Reading Gadget snapshots

```python
from dtfeio.options import UserOptions
from dtfeio.gadget_reader import read_gadget_file

options = UserOptions()
data = read_gadget_file("snapshot_%03d", options)
print(data.number_of_particles())
print(data.positions.shape, data.weights[:5])
print(options.box_coordinates)
```

When the given name is not an existing file, it is treated as a root holding a
`%`-style number field such as `%03d`, and the files `0 .. num_files-1` are read.
The box runs from 0 to the header's `BoxSize` along each axis, unless
`options.user_given_box_coordinates` is set. Particle species switched off in
`options.read_particle_species` are skipped. If the fourth entry of
`options.read_particle_data` is set, the gas internal energy, weighted by the
particle mass, is stored in the first scalar component.

The result is a `dtfeio.particles.ReadData` object. Its `positions`,
`weights`, `velocities` and `scalars` attributes are numpy arrays, with one
row per particle.

The lower-level pieces are also available:

- `dtfeio.gadget_binary.initialize_gadget` works out the format, byte order
  and value sizes, returns them as a `SnapshotLayout`, and allocates the arrays;
- `dtfeio.gadget_reader.read_gadget_data` reads one file into an existing
  `ReadData`;
- `dtfeio.gadget_header.GadgetHeader` encodes and decodes the 256-byte header
  (`from_bytes`, `to_bytes`, `format`);
- `dtfeio.gadget_header.detect_snapshot_type` identifies the format from the
  first block marker.

### Force files

`dtfeio.gadget_mog.read_gadget_file_mog(filename, options)` reads a snapshot
and also the force files that go with it. It expects two entries in
`options.additional_options`:

1. the root name of the force files; snapshot file `i` goes with force file `i + 1`;
2. the number of force components per particle.

The forces go into the scalar array. `ReadData` holds one scalar component by
default, so asking for more components raises `ValueError`.

## Reading text files

A particle text file gives the particle count first, then the box bounds
(`xMin xMax yMin yMax zMin zMax`), then one line per particle:

```python
from dtfeio.text_input import read_text_file, read_text_positions, read_text_with_sampling

data = read_text_file("particles.txt", options)        # coordinates then weight per line
data = read_text_positions("positions.txt", options)   # coordinates only
```

`read_text_with_sampling` reads a positions-only file. It also reads the file
named by `options.additional_options[0]`, which gives the number of sampling
points and then, for each point, its coordinates followed by its cell size
along each axis. These end up in `data.sampling` and `data.delta`.

## Writing fields

```python
import numpy as np
from dtfeio.text_output import write_text_file, write_text_grid_index
from dtfeio.text_sampling import write_text_sampling_positions
from dtfeio.text_cone import write_text_redshift_cone
from dtfeio.density_file import write_density_file, read_density_file

options = UserOptions(grid_size=[4, 4, 4])
values = np.zeros(64)

write_text_file(values, "density.txt", "density", options)
write_text_grid_index(values, "density_idx.txt", "density", options)
write_text_sampling_positions(values, "density_pos.txt", "density", options)

header = write_density_file(values, "density.bin", "density", options)
header, array = read_density_file("density.bin")
print(header.format())
```

- Each text writer puts one line per sampling point. A line holds either the
  grid indices (`write_text_grid_index`), the cell centre inside
  `options.region` (`write_text_sampling_positions`), or the cone cell position
  (`write_text_redshift_cone`), and then the field value or its tab-separated
  components.
- `sampling_positions(options)` and `cone_positions(options)` return those
  positions as arrays.
- `write_density_file` writes the values as 32-bit floats in the machine's
  byte order, after a `DensityHeader`. The header records:
  - the grid size and the box (or the region, when `region_on` is set);
  - the method (`DensityMethod`);
  - the kind of field, worked out from the variable name (`FieldFileType`);
  - the program options text.

  When `options.input_file_type` is 101 or 102 and the input snapshot exists,
  the cosmology and particle totals are copied from the Gadget header.

Progress messages are sent through the standard `logging` module.

## Utilities

- `dtfeio.vector.PVector` is a fixed-length vector. It supports `+`, `-`,
  multiplication and division by a scalar, and equality.
  `matrix_multiply` and `matrix_vector_multiply` form the small matrix products.
- `dtfeio.particles` provides `ParticleData`, `SamplePoint`, `ReadData` and
  position-ordering helpers (`particle_sort_key`, `compare_particles`,
  `same_particle`).
- `dtfeio.misc` provides:
  - range checks (`interval_check`, `lower_bound_check`, `upper_bound_check`);
  - option-combination checks (`conflicting_options`, `option_dependency`,
    `superfluous_options`, `superfluous_unless`);
  - `minimum`, `maximum`, an in-place `quicksort`, and integer roots (`root_n`,
    `is_root_n`).

  Failed checks raise `ConsistencyError`.

## What the package does not do

- It does not interpolate fields from particles; it only reads the inputs and
  writes the results.
- It has no command-line program.
- It does not read HDF5 snapshots.

## Running the tests

```
pip install .[test]
pytest
```