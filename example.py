from SurfPlot.function import ScalarFunction
from SurfPlot.mesh import create_surface_mesh, export_surface_mesh
from SurfPlot.plot import SurfacePlot

bounds = [[-2, -2, -2], [2, 2, 2]]

# cut along the line x = y
f = ScalarFunction(["x", "y"], "1 / (x - y)")
mesh = create_surface_mesh(f, bounds, resolution=64)
export_surface_mesh("tmp_outputs/one_over_x_minus_y.vtk", mesh)

plot = SurfacePlot(ScalarFunction(["x", "y"], "sin(x) * cos(y)"))
plot.set_on_update(lambda p, ctx: print(f"{ctx}: plot changed to {p.function!r}"), "example")
mesh = plot.mesh(bounds, {"resolution": 32})
export_surface_mesh("tmp_outputs/sin_cos.obj", mesh)

plot.function = ScalarFunction(["x", "y"], "sqrt(1 - x*x - y*y)")
export_surface_mesh("tmp_outputs/hemisphere.vtk", plot.mesh(bounds, {"resolution": 32}))
