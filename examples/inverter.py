from easyrtl import Context, compile_simulator, generate_simulator, generate_structural

def build():
    m = Context().module("Inverter")
    i = m.input("i", 1)
    m.output("o", ~i)
    return m


def main():
    top = build()
    print("".join(generate_simulator(top)))
    print("".join(generate_structural(top)))
    sim = compile_simulator(top)()
    for i in [0, 1]:
        sim.i = i
        sim.prop()
        print(f"i={i} o={sim.o}")


if __name__ == "__main__":
    main()
