import numpy


class Block(object):
    name = None
    solid = True

class Stone(Block):
    name = 'Stone'

class Dirt(Block):
    name = 'Dirt'

class DirtWithGrass(Block):
    name = 'Grass'

class Sand(Block):
    name = 'Sand'

class Bedrock(Block):
    name = 'Bedrock'

class Water(Block):
    # What the sea level override writes into open space.
    name = 'Water'
    solid = False

BLOCKS = [
    Stone,
    Dirt,
    DirtWithGrass,
    Sand,
    Bedrock,
    Water,
]
AIR = 0
i = 1
BLOCK_ID = {}
for x in BLOCKS:
    BLOCK_ID[x.name] = i
    i+=1
BLOCK_SOLID = numpy.array([False]+[x.solid for x in BLOCKS], dtype = numpy.uint8)
