import numpy as np
import pytest

from femform.errors import FormConstructionError, CoefficientNotFoundError
from femform.fem import CompiledForm, CoordinateMapping, Form, IntegralType

from form_data import TriangleMesh, SizedSpace, area_kernel, scaled_area_kernel, mesh_data


@pytest.fixture
def mesh():
    data = mesh_data[0]
    return TriangleMesh(data['node'], data['cell'])


class TestFormInterface:
    @pytest.mark.parametrize("ldofs", [(), (5, ), (3, 4)])
    def test_rank_and_spaces(self, mesh, ldofs):
        spaces = [SizedSpace(mesh, n) for n in ldofs]
        form = Form(CompiledForm(rank=len(ldofs)), spaces)

        assert form.rank == len(form.function_spaces) == len(ldofs)
        for i, space in enumerate(spaces):
            assert form.function_space(i) is space
        with pytest.raises(IndexError):
            form.function_space(form.rank)

    @pytest.mark.parametrize("ldofs, size", [((), 1), ((5, ), 5), ((3, 4), 12)])
    def test_max_element_tensor_size(self, mesh, ldofs, size):
        spaces = [SizedSpace(mesh, n) for n in ldofs]
        form = Form(CompiledForm(rank=len(ldofs)), spaces, mesh=mesh)
        assert form.max_element_tensor_size() == size

    def test_functional_without_spaces(self, mesh):
        form = Form(CompiledForm(rank=0))
        assert form.mesh is None
        form.set_mesh(mesh)
        assert form.mesh is mesh
        assert form.rank == 0
        assert form.max_element_tensor_size() == 1

    def test_mesh_from_spaces(self, mesh):
        V = SizedSpace(mesh, 3)
        form = Form(CompiledForm(rank=2), [V, SizedSpace(mesh, 6)])
        assert form.mesh is mesh
        form.set_mesh(mesh)
        other = TriangleMesh(mesh.node, mesh.cell)
        with pytest.raises(FormConstructionError):
            form.set_mesh(other)
        assert form.mesh is mesh

    def test_construction_errors(self, mesh):
        other = TriangleMesh(mesh.node, mesh.cell)
        with pytest.raises(FormConstructionError):
            Form(CompiledForm(rank=1), [])
        with pytest.raises(FormConstructionError):
            Form(CompiledForm(rank=1), [SizedSpace(mesh, 3), SizedSpace(mesh, 3)])
        with pytest.raises(FormConstructionError):
            Form(CompiledForm(rank=2), [SizedSpace(mesh, 3), SizedSpace(other, 3)])
        with pytest.raises(FormConstructionError):
            Form(CompiledForm(rank=1), [SizedSpace(mesh, 3)], mesh=other)
        with pytest.raises(ValueError):
            CompiledForm(rank=3)

    def test_integrals_from_bundle(self):
        compiled = CompiledForm(rank=0, integrals={'dx': {-1: area_kernel, 1: scaled_area_kernel}},
                                signature='area')
        form = Form(compiled)
        assert form.integrals.count(IntegralType.CELL) == 2
        assert form.integrals.kernel_for('dx', 1) is scaled_area_kernel
        assert form.integrals.kernel_for('dx', 0) is area_kernel
        assert form.signature == 'area'
        assert repr(form) == "Form(rank=0, 'area')"

    def test_coordinate_mapping(self):
        assert Form(CompiledForm(rank=0)).coordinate_mapping is None
        compiled = CompiledForm(rank=0, coordinate_mapping=lambda: CoordinateMapping(2, 2))
        cmap = Form(compiled).coordinate_mapping
        assert isinstance(cmap, CoordinateMapping)
        assert cmap.tdim == 2


class TestFormCoefficientNames:
    def create_form(self):
        compiled = CompiledForm(rank=0, coefficient_names=["kappa", "f"],
                                original_coefficient_positions=[1, 0])
        return Form(compiled)

    def test_registry_lookup(self):
        form = self.create_form()
        assert form.get_coefficient_index("f") == 1
        assert form.get_coefficient_name(0) == "kappa"
        assert form.original_coefficient_position(0) == 1
        assert form.original_coefficient_position(1) == 0
        with pytest.raises(CoefficientNotFoundError):
            form.get_coefficient_index("g")
        with pytest.raises(IndexError):
            form.get_coefficient_name(2)

    def test_callbacks_take_precedence(self):
        form = self.create_form()
        form.set_coefficient_index_map(lambda name: {"w0": 0, "w1": 1}[name])
        form.set_coefficient_name_map(lambda i: f"w{i}")

        assert form.get_coefficient_index("w1") == 1
        assert form.get_coefficient_name(0) == "w0"

        form.set_coefficient_index_map(None)
        form.set_coefficient_name_map(None)
        assert form.get_coefficient_index("kappa") == 0
        assert form.get_coefficient_name(1) == "f"

    def test_set_coefficients(self):
        form = self.create_form()
        kappa, f = object(), object()
        form.set_coefficients({"kappa": kappa, 1: f})
        assert form.coefficients.get(0) is kappa
        assert form.coefficients.get("f") is f
        form.coefficients.check()


class TestFormDomains:
    @pytest.mark.parametrize("attr, itype", [
        ("cell_domains", IntegralType.CELL),
        ("exterior_facet_domains", IntegralType.EXTERIOR_FACET),
        ("interior_facet_domains", IntegralType.INTERIOR_FACET),
        ("vertex_domains", IntegralType.VERTEX),
    ])
    def test_accessors(self, attr, itype):
        form = Form(CompiledForm(rank=0))
        assert getattr(form, attr) is None
        markers = np.array([3, 1, 4])
        setattr(form, attr, markers)
        assert getattr(form, attr) is markers
        assert form.domains(itype) is markers
        assert form.domains(itype.measure) is markers
        assert form.subdomain_id(itype, 2) == 4

        setattr(form, attr, None)
        assert form.domains(itype) is None
        assert form.subdomain_id(itype, 2) is None

    def test_values_are_not_checked(self):
        form = Form(CompiledForm(rank=0, integrals={'dx': {-1: area_kernel}}))
        form.cell_domains = np.array([1000, -5])
        assert form.subdomain_id('dx', 0) == 1000

    def test_mapping_markers(self):
        form = Form(CompiledForm(rank=0))
        form.set_domains('ds', {4: 2, 7: 1})
        assert form.subdomain_id('ds', 7) == 1
        assert form.subdomain_id('ds', np.int64(4)) == 2
        assert form.subdomain_id('ds', 0) is None


if __name__ == "__main__":
    pytest.main(['./test_form.py'])
