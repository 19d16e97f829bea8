# test/test_netcdf_store.py
import netCDF4
import numpy as np
import pytest

from dssncdf.core import (
    InvalidTimeAxis,
    StoreIOError,
    StoreMeta,
    TimeAxis,
    VariableNameCollision,
    VariableNotFound,
)
from dssncdf.io.netcdf_store import NCHAR_DIM, TIME_DIM, TIME_VAR, NetCDFStore, store_lock


@pytest.fixture
def nc_path(tmp_path, days):
    path = tmp_path / "out.nc"
    NetCDFStore.create(path, TimeAxis(time=days(5)), meta=StoreMeta.for_source("basin.dss"))
    return path


def test_create_writes_legacy_layout(nc_path):
    with netCDF4.Dataset(str(nc_path), "r") as ds:
        assert ds.data_model == "NETCDF4"
        assert len(ds.dimensions[TIME_DIM]) == 5
        assert len(ds.dimensions[NCHAR_DIM]) == 23
        assert ds.variables[TIME_VAR].dimensions == (TIME_DIM, NCHAR_DIM)
        assert ds.title == "Data from basin.dss"
        assert ds.history.startswith("Created: ")


def test_axis_round_trips(nc_path, days):
    with NetCDFStore.open(nc_path) as store:
        axis = store.read_axis()
        assert store.axis_length == 5
    assert np.array_equal(axis.time, days(5))


def test_labels_are_canonical(nc_path):
    with netCDF4.Dataset(str(nc_path), "r") as ds:
        var = ds.variables[TIME_VAR]
        var.set_auto_chartostring(False)
        labels = netCDF4.chartostring(np.ma.getdata(var[:]))
    assert labels[0] == "2000-01-01 00:00:00 UTC"
    assert labels[-1] == "2000-01-05 00:00:00 UTC"


def test_create_refuses_to_clobber(nc_path, days):
    with pytest.raises(FileExistsError):
        NetCDFStore.create(nc_path, TimeAxis(time=days(2)))


def test_create_overwrite_replaces_file(nc_path, days):
    NetCDFStore.create(nc_path, TimeAxis(time=days(2)), overwrite=True)
    with NetCDFStore.open(nc_path) as store:
        assert store.axis_length == 2
        assert store.variables() == []


def test_create_rejects_empty_axis(tmp_path):
    with pytest.raises(InvalidTimeAxis):
        NetCDFStore.create(tmp_path / "x.nc", TimeAxis(time=[]))


def test_declare_write_and_attributes(nc_path):
    with NetCDFStore.open(nc_path, "a") as store:
        store.declare_variable("FLOW", 5, fill_value=-9999.0)
        store.write_at("FLOW", 2, np.array([10.0, 20.0, 30.0]))
        store.set_attribute("FLOW", "units", "CFS")

    with NetCDFStore.open(nc_path) as store:
        assert store.variables() == ["FLOW"]
        v = store.read_variable("FLOW")
        assert np.ma.getmaskarray(v).tolist() == [True, True, False, False, False]
        assert np.allclose(v[2:].filled(), [10.0, 20.0, 30.0])
        assert store.attributes("FLOW")["units"] == "CFS"


def test_default_fill_reads_as_masked(nc_path):
    with NetCDFStore.open(nc_path, "a") as store:
        store.declare_variable("FLOW", 5)
        store.write_at("FLOW", 0, np.array([1.0]))

    with NetCDFStore.open(nc_path) as store:
        v = store.read_variable("FLOW")
    assert np.ma.getmaskarray(v).tolist() == [False, True, True, True, True]


def test_declare_collision_raises(nc_path):
    with NetCDFStore.open(nc_path, "a") as store:
        store.declare_variable("FLOW", 5)
        with pytest.raises(VariableNameCollision):
            store.declare_variable("FLOW", 5)
        with pytest.raises(VariableNameCollision):
            store.declare_variable(TIME_VAR, 5)


def test_declare_requires_full_axis_length(nc_path):
    with NetCDFStore.open(nc_path, "a") as store:
        with pytest.raises(ValueError):
            store.declare_variable("FLOW", 3)


def test_unknown_variable_raises(nc_path):
    with NetCDFStore.open(nc_path) as store:
        with pytest.raises(VariableNotFound):
            store.read_variable("missing")


def test_open_missing_file_is_store_io_error(tmp_path):
    with pytest.raises(StoreIOError):
        with NetCDFStore.open(tmp_path / "missing.nc", "a"):
            pass


def test_uninitialized_file_is_store_io_error(tmp_path):
    path = tmp_path / "bare.nc"
    netCDF4.Dataset(str(path), "w").close()
    with NetCDFStore.open(path) as store:
        with pytest.raises(StoreIOError):
            store.read_axis()
        with pytest.raises(StoreIOError):
            _ = store.axis_length


def test_store_lock_is_shared_per_path(tmp_path):
    a = store_lock(tmp_path / "x.nc")
    b = store_lock(tmp_path / "." / "x.nc")
    c = store_lock(tmp_path / "y.nc")
    assert a is b
    assert a is not c


def test_time_stamp_is_a_char_matrix(nc_path):
    with netCDF4.Dataset(str(nc_path), "r") as ds:
        var = ds.variables[TIME_VAR]
        var.set_auto_chartostring(False)
        raw = np.ma.getdata(var[:])
    assert raw.shape == (5, 23)
    assert raw.dtype == np.dtype("S1")
    assert b"".join(raw[1]).decode() == "2000-01-02 00:00:00 UTC"


def test_longer_zone_label_widens_char_dimension(tmp_path, days):
    path = NetCDFStore.create(tmp_path / "z.nc", TimeAxis(time=days(2)), tz_label="America/Los_Angeles")
    with netCDF4.Dataset(str(path), "r") as ds:
        assert len(ds.dimensions[NCHAR_DIM]) == len("2000-01-01 00:00:00 America/Los_Angeles")
    with NetCDFStore.open(path) as store:
        assert np.array_equal(store.read_axis().time, days(2))


@pytest.mark.parametrize("label", ["US Pacific", "", "  "])
def test_create_rejects_multi_token_zone_label(tmp_path, days, label):
    path = tmp_path / "tz.nc"
    with pytest.raises(InvalidTimeAxis):
        NetCDFStore.create(path, TimeAxis(time=days(2)), tz_label=label)
    assert not path.exists()


def test_nan_values_are_stored_as_missing(nc_path):
    with NetCDFStore.open(nc_path, "a") as store:
        store.declare_variable("FLOW", 5)
        store.write_at("FLOW", 0, np.array([1.0, np.nan, 3.0]))

    with NetCDFStore.open(nc_path) as store:
        v = store.read_variable("FLOW")
    assert np.ma.getmaskarray(v).tolist() == [False, True, False, True, True]
    assert np.allclose(v.compressed(), [1.0, 3.0])


def test_nan_values_use_explicit_fill_value(nc_path):
    with NetCDFStore.open(nc_path, "a") as store:
        store.declare_variable("FLOW", 5, fill_value=-9999.0)
        store.write_at("FLOW", 1, np.array([np.nan, 2.0]))

    with netCDF4.Dataset(str(nc_path), "r") as ds:
        var = ds.variables["FLOW"]
        var.set_auto_mask(False)
        raw = var[:]
    assert raw.tolist() == [-9999.0, -9999.0, 2.0, -9999.0, -9999.0]


@pytest.mark.parametrize("mode", ["r", "a"])
def test_open_missing_file_leaves_nothing_behind(tmp_path, mode):
    path = tmp_path / "missing.nc"
    with pytest.raises(StoreIOError):
        with NetCDFStore.open(path, mode):
            pass
    assert not path.exists()


def test_global_attributes(nc_path):
    with NetCDFStore.open(nc_path) as store:
        attrs = store.global_attributes()
    assert attrs["title"] == "Data from basin.dss"
    assert set(attrs) == {"title", "history"}
