from numba import njit


@njit(cache=True)
def axpy_into(alpha, x, y, out):
    # out[:] = y + alpha * x
    n = y.size
    for i in range(n):
        out[i] = y[i] + alpha * x[i]


@njit(cache=True)
def rk4_combine(psi, k1, k2, k3, k4, dt, out):
    # out[:] = psi + dt/6 * (k1 + 2 k2 + 2 k3 + k4); out may alias psi
    c = dt / 6.0
    n = psi.size
    for i in range(n):
        out[i] = psi[i] + c * (k1[i] + 2.0 * k2[i] + 2.0 * k3[i] + k4[i])
